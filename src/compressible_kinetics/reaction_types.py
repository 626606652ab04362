"""Reaction categories, temperature selectors and the thermodynamic state.

Each reaction category is mapped to the temperatures that control its forward
and reverse rate coefficients. Electron-impact processes use the electron
temperature Te, heavy-particle dissociation uses Park's geometric mean
sqrt(T * Tv), and everything else uses the translational temperature T.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping

import jax.numpy as jnp
import numpy as np
import pydantic
from jaxtyping import Array, Float

from compressible_kinetics.rate_laws_types import RateLaw

GibbsFn = Callable[[Float[Array, ""]], Float[Array, " n_species"]]


@dataclass(frozen=True)
class ThermodynamicState:
    """Snapshot of the temperatures and the standard-state Gibbs model.

    Attributes:
        T: Translational temperature [K].
        Te: Electron temperature [K].
        Tv: Vibrational temperature [K].
        species_gibbs_over_rt: Callable returning the standard-state G_s/(Ru T)
            of every species at the given temperature.
    """

    T: pydantic.PositiveFloat
    Te: pydantic.PositiveFloat
    Tv: pydantic.PositiveFloat
    species_gibbs_over_rt: GibbsFn = field(repr=False, compare=False)


class TemperatureSelector(enum.Enum):
    """Rate-controlling temperature of a rate coefficient."""

    TRANSLATIONAL = "T"
    ELECTRON = "Te"
    PARK = "sqrt(T*Tv)"

    def eval_temperature(self, state: ThermodynamicState) -> Float[Array, ""]:
        return _SELECTOR_FUNCTIONS[self](state)


_SELECTOR_FUNCTIONS: dict[
    TemperatureSelector, Callable[[ThermodynamicState], Float[Array, ""]]
] = {
    TemperatureSelector.TRANSLATIONAL: lambda state: jnp.asarray(state.T),
    TemperatureSelector.ELECTRON: lambda state: jnp.asarray(state.Te),
    TemperatureSelector.PARK: lambda state: jnp.sqrt(
        jnp.asarray(state.T) * jnp.asarray(state.Tv)
    ),
}


class ReactionCategory(enum.Enum):
    """Reaction mechanisms distinguished by the kinetics machinery.

    Suffix _E denotes electron impact, _M a heavy-particle collision partner.
    """

    GENERIC = enum.auto()
    ASSOCIATIVE_IONIZATION = enum.auto()
    DISSOCIATIVE_RECOMBINATION = enum.auto()
    ASSOCIATIVE_DETACHMENT = enum.auto()
    DISSOCIATIVE_ATTACHMENT = enum.auto()
    DISSOCIATION_E = enum.auto()
    RECOMBINATION_E = enum.auto()
    DISSOCIATION_M = enum.auto()
    RECOMBINATION_M = enum.auto()
    IONIZATION_E = enum.auto()
    ION_RECOMBINATION_E = enum.auto()
    IONIZATION_M = enum.auto()
    ION_RECOMBINATION_M = enum.auto()
    ELECTRONIC_ATTACHMENT_M = enum.auto()
    ELECTRONIC_DETACHMENT_M = enum.auto()
    ELECTRONIC_ATTACHMENT_E = enum.auto()
    ELECTRONIC_DETACHMENT_E = enum.auto()
    EXCHANGE = enum.auto()
    EXCITATION_M = enum.auto()
    EXCITATION_E = enum.auto()


_T = TemperatureSelector.TRANSLATIONAL
_TE = TemperatureSelector.ELECTRON
_PARK = TemperatureSelector.PARK

RATE_SELECTORS: Mapping[
    ReactionCategory, tuple[TemperatureSelector, TemperatureSelector]
] = MappingProxyType(
    {
        ReactionCategory.ASSOCIATIVE_IONIZATION: (_T, _TE),
        ReactionCategory.DISSOCIATIVE_RECOMBINATION: (_TE, _T),
        ReactionCategory.ASSOCIATIVE_DETACHMENT: (_T, _TE),
        ReactionCategory.DISSOCIATIVE_ATTACHMENT: (_TE, _T),
        ReactionCategory.DISSOCIATION_E: (_TE, _TE),
        ReactionCategory.RECOMBINATION_E: (_TE, _TE),
        ReactionCategory.DISSOCIATION_M: (_PARK, _T),
        ReactionCategory.RECOMBINATION_M: (_T, _PARK),
        ReactionCategory.IONIZATION_E: (_TE, _TE),
        ReactionCategory.ION_RECOMBINATION_E: (_TE, _TE),
        ReactionCategory.IONIZATION_M: (_T, _T),
        ReactionCategory.ION_RECOMBINATION_M: (_T, _T),
        ReactionCategory.ELECTRONIC_ATTACHMENT_M: (_TE, _T),
        ReactionCategory.ELECTRONIC_DETACHMENT_M: (_T, _TE),
        ReactionCategory.ELECTRONIC_ATTACHMENT_E: (_TE, _TE),
        ReactionCategory.ELECTRONIC_DETACHMENT_E: (_TE, _TE),
        ReactionCategory.EXCHANGE: (_T, _T),
        ReactionCategory.EXCITATION_M: (_T, _T),
        ReactionCategory.EXCITATION_E: (_TE, _TE),
    }
)


def rate_selectors(
    category: ReactionCategory,
) -> tuple[TemperatureSelector, TemperatureSelector]:
    """(forward, reverse) rate-controlling temperatures of a reaction category."""
    return RATE_SELECTORS.get(category, (_T, _T))


@dataclass(frozen=True)
class Reaction:
    """Elementary reaction as handed over by the mechanism loader.

    Attributes:
        formula: Human-readable reaction equation.
        category: Reaction mechanism, selects the controlling temperatures.
        reactants: Species index -> stoichiometric coefficient.
        products: Species index -> stoichiometric coefficient.
        rate_law: Forward rate law.
        reversible: Whether a backward rate is computed from detailed balance.
        third_body: Whether the rate of progress is multiplied by the
            efficiency-weighted concentration of collision partners.
        third_body_efficiencies: Species index -> efficiency (default 1).
        third_body_group_efficiencies: Species-group index -> efficiency
            shared by all members of the group (default 1).
    """

    formula: str
    category: ReactionCategory
    reactants: Mapping[int, float]
    products: Mapping[int, float]
    rate_law: RateLaw
    reversible: bool = True
    third_body: bool = False
    third_body_efficiencies: Mapping[int, float] = field(default_factory=dict)
    third_body_group_efficiencies: Mapping[int, float] = field(default_factory=dict)

    @property
    def order(self) -> float:
        """Forward reaction order, counting the third body as one partner."""
        return sum(self.reactants.values()) + (1.0 if self.third_body else 0.0)

    @property
    def delta_nu(self) -> float:
        """Change in number of moles, products minus reactants."""
        return sum(self.products.values()) - sum(self.reactants.values())

    def net_stoich(self, n_species: int) -> np.ndarray:
        """Net stoichiometric coefficients (products - reactants). Shape [n_species]."""
        nu = np.zeros(n_species)
        for s, coeff in self.reactants.items():
            nu[s] -= coeff
        for s, coeff in self.products.items():
            nu[s] += coeff
        return nu
