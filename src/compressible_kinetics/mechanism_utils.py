from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Mapping, Sequence

import jax.numpy as jnp
import numpy as np
from jaxtyping import Array, Bool, Float

from compressible_kinetics.errors import ConfigurationError
from compressible_kinetics.rate_laws_utils import RateLawUnitConfig, rate_law_from_dict
from compressible_kinetics.reaction_types import Reaction, ReactionCategory
from compressible_kinetics.thirdbody_manager import SpeciesGroups

logger = logging.getLogger(__name__)


def _parse_category(value: object, formula: str) -> ReactionCategory:
    name = str(value).strip().upper()
    try:
        return ReactionCategory[name]
    except KeyError:
        raise ConfigurationError(
            "reaction category",
            str(value),
            f"in reaction '{formula}', expected one of "
            f"{[category.name for category in ReactionCategory]}",
        )


def _parse_bool(entry: Mapping, key: str, default: bool, formula: str) -> bool:
    value = entry.get(key, default)
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("yes", "no"):
        return value.strip().lower() == "yes"
    raise ConfigurationError(
        "reaction field",
        f"{formula}.{key}",
        f"values can only be true/false or \"yes\"/\"no\", got {value!r}",
    )


def _parse_species_map(
    raw: object,
    species_index: Mapping[str, int],
    key: str,
    formula: str,
) -> dict[int, float]:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            "reaction field", f"{formula}.{key}", "expected a species -> value mapping"
        )
    parsed = {}
    for name, value in raw.items():
        if name not in species_index:
            raise ConfigurationError(
                "species", name, f"in reaction '{formula}' is not in the mixture"
            )
        try:
            parsed[species_index[name]] = float(value)
        except (TypeError, ValueError):
            raise ConfigurationError(
                "reaction field",
                f"{formula}.{key}.{name}",
                f"expected a number, got {value!r}",
            )
    return parsed


def reaction_from_dict(
    entry: Mapping,
    species_index: Mapping[str, int],
    unit_config: RateLawUnitConfig = RateLawUnitConfig(),
    group_index: Mapping[str, int] | None = None,
) -> Reaction:
    """Build a Reaction from a mechanism entry.

    The entry holds:
        - formula: Human-readable reaction equation
        - category: ReactionCategory name (case-insensitive), default "generic"
        - reactants / products: Dict mapping species name to coefficient
        - reversible: Default true
        - third_body: Default false
        - efficiencies: Dict mapping species name to third-body efficiency
        - group_efficiencies: Dict mapping species-group name to efficiency
        - rate_law: Rate-law entry, see rate_law_from_dict()

    Raises:
        ConfigurationError: If a field is missing or malformed, or a species is
            not part of the mixture.
    """
    formula = str(entry.get("formula", entry.get("equation", "<unnamed>")))
    for key in ("reactants", "products", "rate_law"):
        if key not in entry:
            raise ConfigurationError(
                "reaction field", f"{formula}.{key}", "missing required field"
            )

    reactants = _parse_species_map(entry["reactants"], species_index, "reactants", formula)
    products = _parse_species_map(entry["products"], species_index, "products", formula)
    category = _parse_category(entry.get("category", "generic"), formula)
    reversible = _parse_bool(entry, "reversible", True, formula)
    third_body = _parse_bool(entry, "third_body", False, formula)

    raw_efficiencies = entry.get("efficiencies", {})
    if isinstance(raw_efficiencies, Mapping):
        # Efficiencies of species absent from the mixture have no effect
        raw_efficiencies = {
            name: value
            for name, value in raw_efficiencies.items()
            if name in species_index
        }
    efficiencies = _parse_species_map(
        raw_efficiencies, species_index, "efficiencies", formula
    )
    group_efficiencies = {}
    raw_groups = entry.get("group_efficiencies", {})
    if raw_groups:
        if group_index is None:
            raise ConfigurationError(
                "reaction field",
                f"{formula}.group_efficiencies",
                "no species groups defined for this mixture",
            )
        group_efficiencies = _parse_species_map(
            raw_groups, group_index, "group_efficiencies", formula
        )

    if (efficiencies or group_efficiencies) and not third_body:
        raise ConfigurationError(
            "reaction field",
            f"{formula}.efficiencies",
            "third-body efficiencies given for a reaction without third body",
        )

    order = sum(reactants.values()) + (1.0 if third_body else 0.0)
    rate_law = rate_law_from_dict(entry["rate_law"], order, unit_config)

    return Reaction(
        formula=formula,
        category=category,
        reactants=reactants,
        products=products,
        rate_law=rate_law,
        reversible=reversible,
        third_body=third_body,
        third_body_efficiencies=efficiencies,
        third_body_group_efficiencies=group_efficiencies,
    )


def load_reactions_from_json(
    json_path: str,
    species_names: Sequence[str],
    unit_config: RateLawUnitConfig = RateLawUnitConfig(),
    species_groups: Mapping[str, Sequence[str]] | None = None,
) -> list[Reaction]:
    """Load a reaction mechanism from a JSON file.

    The file holds either an array of reaction entries or an object with a
    "reactions" array. Reactions involving species outside ``species_names``
    are skipped.

    Args:
        json_path: Path to JSON file with reaction data.
        species_names: Ordered species of the mixture.
        unit_config: Input units of every rate-law kind.
        species_groups: Optional group name -> member species names, used to
            resolve group efficiencies.

    Returns:
        Reactions in file order.
    """
    json_path = Path(json_path)
    with json_path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    reactions = data.get("reactions", data) if isinstance(data, dict) else data
    if not isinstance(reactions, list):
        raise ConfigurationError(
            "mechanism file", str(json_path), "must contain a 'reactions' array"
        )

    species_index = {name: i for i, name in enumerate(species_names)}
    group_index = (
        {name: g for g, name in enumerate(species_groups)}
        if species_groups is not None
        else None
    )

    loaded = []
    for r, entry in enumerate(reactions):
        involved = set(entry.get("reactants", {})) | set(entry.get("products", {}))
        missing = involved - species_index.keys()
        if missing:
            logger.info(
                "Skipping reaction %d (%s): species %s not in mixture.",
                r,
                entry.get("formula", entry.get("equation", "")),
                sorted(missing),
            )
            continue
        loaded.append(reaction_from_dict(entry, species_index, unit_config, group_index))

    logger.debug("Loaded %d of %d reactions from %s.", len(loaded), len(reactions), json_path)
    return loaded


def build_stoichiometry(
    reactions: Sequence[Reaction], n_species: int
) -> tuple[
    Float[Array, "n_reactions n_species"],
    Float[Array, "n_reactions n_species"],
    Bool[np.ndarray, " n_reactions"],
]:
    """Reactant and product stoichiometry matrices and reversibility flags."""
    reactant_stoich = np.zeros((len(reactions), n_species))
    product_stoich = np.zeros((len(reactions), n_species))
    for r, reaction in enumerate(reactions):
        for s, coeff in reaction.reactants.items():
            reactant_stoich[r, s] = coeff
        for s, coeff in reaction.products.items():
            product_stoich[r, s] = coeff
    reversible = np.array([reaction.reversible for reaction in reactions], dtype=bool)
    return jnp.array(reactant_stoich), jnp.array(product_stoich), reversible


def species_groups_from_names(
    species_groups: Mapping[str, Sequence[str]], species_names: Sequence[str]
) -> SpeciesGroups:
    """Resolve group name -> member names into a SpeciesGroups of indices."""
    species_index = {name: i for i, name in enumerate(species_names)}
    members = []
    for group, names in species_groups.items():
        unknown = [name for name in names if name not in species_index]
        if unknown:
            raise ConfigurationError(
                "species group", group, f"members {unknown} are not in the mixture"
            )
        members.append(tuple(species_index[name] for name in names))
    return SpeciesGroups(members=tuple(members))
