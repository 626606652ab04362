"""Tests for mechanism loading."""

import json
import logging
import math

import jax
import numpy as np
import pytest

from compressible_kinetics import constants
from compressible_kinetics.errors import ConfigurationError
from compressible_kinetics.mechanism_utils import (
    build_stoichiometry,
    load_reactions_from_json,
    reaction_from_dict,
    species_groups_from_names,
)
from compressible_kinetics.rate_laws_types import Arrhenius
from compressible_kinetics.rate_laws_utils import RateLawUnitConfig, RateLawUnits
from compressible_kinetics.reaction_types import ReactionCategory

jax.config.update("jax_enable_x64", True)

SPECIES = ["e-", "N", "N2", "N+"]
SPECIES_INDEX = {name: i for i, name in enumerate(SPECIES)}


@pytest.fixture
def mechanism():
    return {
        "reactions": [
            {
                "formula": "N2+M=2N+M",
                "category": "dissociation_m",
                "reactants": {"N2": 1},
                "products": {"N": 2},
                "third_body": True,
                "efficiencies": {"N": 4.2857, "O": 4.2857},
                "rate_law": {"type": "arrhenius", "A": 7.0e21, "n": -1.6, "Ea": 113200.0},
            },
            {
                "formula": "O2+M=2O+M",
                "category": "dissociation_m",
                "reactants": {"O2": 1},
                "products": {"O": 2},
                "third_body": True,
                "rate_law": {"type": "arrhenius", "A": 2.0e21, "n": -1.5, "Ea": 59500.0},
            },
            {
                "formula": "N+e-=>N++2e-",
                "category": "ionization_e",
                "reactants": {"N": 1, "e-": 1},
                "products": {"N+": 1, "e-": 2},
                "reversible": "no",
                "rate_law": {"type": "constant", "A": 1.0e10},
            },
        ]
    }


@pytest.fixture
def mechanism_file(tmp_path, mechanism):
    path = tmp_path / "mechanism.json"
    path.write_text(json.dumps(mechanism))
    return path


@pytest.fixture
def cgs():
    return RateLawUnitConfig(
        arrhenius=RateLawUnits(A_units="cm,mol,s,K"),
        constant=RateLawUnits(A_units="cm,mol,s,K"),
    )


class TestLoadReactionsFromJson:
    def test_skips_reactions_with_missing_species(self, mechanism_file, cgs, caplog):
        with caplog.at_level(logging.INFO, logger="compressible_kinetics"):
            reactions = load_reactions_from_json(str(mechanism_file), SPECIES, cgs)

        assert [r.formula for r in reactions] == ["N2+M=2N+M", "N+e-=>N++2e-"]
        assert "O2+M=2O+M" in caplog.text

    def test_parses_reaction_fields(self, mechanism_file, cgs):
        dissociation, ionization = load_reactions_from_json(
            str(mechanism_file), SPECIES, cgs
        )

        assert dissociation.category is ReactionCategory.DISSOCIATION_M
        assert dissociation.reactants == {2: 1.0}
        assert dissociation.products == {1: 2.0}
        assert dissociation.third_body
        assert dissociation.third_body_efficiencies == {1: 4.2857}
        assert ionization.category is ReactionCategory.IONIZATION_E
        assert not ionization.reversible

    def test_converts_rate_units(self, mechanism_file, cgs):
        dissociation, ionization = load_reactions_from_json(
            str(mechanism_file), SPECIES, cgs
        )

        # Third body raises the order to 2
        assert isinstance(dissociation.rate_law, Arrhenius)
        assert dissociation.rate_law.A == pytest.approx(7.0e15, rel=1e-12)
        assert ionization.rate_law.A == pytest.approx(1.0e4, rel=1e-12)

    def test_plain_reaction_list(self, tmp_path, mechanism):
        path = tmp_path / "list.json"
        path.write_text(json.dumps(mechanism["reactions"]))

        reactions = load_reactions_from_json(str(path), SPECIES)

        assert len(reactions) == 2

    def test_rejects_non_list(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"reactions": {"formula": "A=B"}}))

        with pytest.raises(ConfigurationError, match="'reactions' array"):
            load_reactions_from_json(str(path), SPECIES)

    def test_group_efficiencies(self, tmp_path):
        entry = {
            "formula": "N2+M=2N+M",
            "reactants": {"N2": 1},
            "products": {"N": 2},
            "third_body": "yes",
            "group_efficiencies": {"atoms": 3.0},
            "rate_law": {"type": "arrhenius", "A": 1.0e10},
        }
        path = tmp_path / "groups.json"
        path.write_text(json.dumps([entry]))

        (reaction,) = load_reactions_from_json(
            str(path), SPECIES, species_groups={"ions": ["N+"], "atoms": ["N"]}
        )

        assert reaction.third_body_group_efficiencies == {1: 3.0}


class TestReactionFromDict:
    @pytest.fixture
    def entry(self):
        return {
            "formula": "N2+N=3N",
            "category": "DISSOCIATION_M",
            "reactants": {"N2": 1, "N": 1},
            "products": {"N": 3},
            "rate_law": {"type": "arrhenius", "A": 1.0e10, "Ea": 1000.0},
        }

    def test_defaults(self, entry):
        del entry["category"]

        reaction = reaction_from_dict(entry, SPECIES_INDEX)

        assert reaction.category is ReactionCategory.GENERIC
        assert reaction.reversible
        assert not reaction.third_body

    def test_unknown_category(self, entry):
        entry["category"] = "photoionization"

        with pytest.raises(ConfigurationError, match="reaction category"):
            reaction_from_dict(entry, SPECIES_INDEX)

    def test_unknown_species(self, entry):
        entry["products"] = {"N": 2, "Ar": 1}

        with pytest.raises(ConfigurationError, match="Invalid species 'Ar'"):
            reaction_from_dict(entry, SPECIES_INDEX)

    def test_bad_boolean(self, entry):
        entry["reversible"] = "maybe"

        with pytest.raises(ConfigurationError, match="yes"):
            reaction_from_dict(entry, SPECIES_INDEX)

    def test_missing_rate_law(self, entry):
        del entry["rate_law"]

        with pytest.raises(ConfigurationError, match="rate_law"):
            reaction_from_dict(entry, SPECIES_INDEX)

    def test_efficiencies_need_third_body(self, entry):
        entry["efficiencies"] = {"N": 2.0}

        with pytest.raises(ConfigurationError, match="without third body"):
            reaction_from_dict(entry, SPECIES_INDEX)

    def test_energy_units(self, entry):
        config = RateLawUnitConfig(arrhenius=RateLawUnits(E_units="J/mol"))

        reaction = reaction_from_dict(entry, SPECIES_INDEX, config)

        assert reaction.rate_law.theta == pytest.approx(
            1000.0 / constants.R_universal, rel=1e-12
        )
        assert reaction.rate_law.ln_A == pytest.approx(math.log(1.0e10), rel=1e-14)


def test_build_stoichiometry(mechanism_file):
    reactions = load_reactions_from_json(str(mechanism_file), SPECIES)

    reactant_stoich, product_stoich, reversible = build_stoichiometry(
        reactions, len(SPECIES)
    )

    np.testing.assert_array_equal(reactant_stoich, [[0, 0, 1, 0], [1, 1, 0, 0]])
    np.testing.assert_array_equal(product_stoich, [[0, 2, 0, 0], [2, 0, 0, 1]])
    np.testing.assert_array_equal(reversible, [True, False])


class TestSpeciesGroupsFromNames:
    def test_resolves_indices(self):
        groups = species_groups_from_names({"nitrogen": ["N", "N+"]}, SPECIES)

        assert groups.members == ((1, 3),)

    def test_unknown_member(self):
        with pytest.raises(ConfigurationError, match="Invalid species group 'oxygen'"):
            species_groups_from_names({"oxygen": ["O"]}, SPECIES)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
