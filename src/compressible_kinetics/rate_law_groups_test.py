"""Tests for batched rate-law groups."""

import math

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from compressible_kinetics import constants, rate_laws
from compressible_kinetics.errors import ConfigurationError
from compressible_kinetics.rate_law_groups import (
    RateCoefficientGroupCollection,
    RateLawGroup,
    ln_equilibrium_constant,
)
from compressible_kinetics.rate_laws_types import (
    Arrhenius,
    ConstantRate,
    RateLawKind,
    TemperatureTerms,
)
from compressible_kinetics.reaction_types import (
    Reaction,
    ReactionCategory,
    TemperatureSelector,
    ThermodynamicState,
)

jax.config.update("jax_enable_x64", True)

PARK = TemperatureSelector.PARK
T_SEL = TemperatureSelector.TRANSLATIONAL


def _state(gibbs=(3.0, 1.0)):
    gibbs = jnp.array(gibbs)
    return ThermodynamicState(
        T=9000.0, Te=11000.0, Tv=4000.0, species_gibbs_over_rt=lambda T: gibbs
    )


@pytest.fixture
def laws():
    return [
        Arrhenius.from_A(7.0e15, -1.6, 113200.0),
        Arrhenius.from_A(3.0e16, -1.6, 113200.0),
        Arrhenius.from_A(2.0e15, -1.5, 59500.0),
        Arrhenius.from_A(1.0e10, 0.0, 10000.0),
    ]


def test_group_evaluation_matches_scalar_laws(laws):
    state = _state()
    group = RateLawGroup(RateLawKind.ARRHENIUS, PARK)
    for i, law in enumerate(laws):
        group.add(i, law, i)

    out = np.zeros(len(laws))
    group.evaluate(state, out)

    terms = TemperatureTerms.from_temperature(math.sqrt(9000.0 * 4000.0))
    for i, law in enumerate(laws):
        assert out[i] == pytest.approx(float(rate_laws.ln_rate(law, terms)), rel=1e-12)


def test_group_writes_only_its_offsets(laws):
    group = RateLawGroup(RateLawKind.ARRHENIUS, T_SEL)
    group.add(0, laws[0], 0)
    group.add(1, laws[1], 5)

    out = np.full(8, -1.0)
    group.evaluate(_state(), out)

    untouched = [1, 2, 3, 4, 6, 7]
    np.testing.assert_array_equal(out[untouched], -1.0)
    assert out[0] != -1.0
    assert out[5] != -1.0


def test_group_rejects_other_law_kind():
    group = RateLawGroup(RateLawKind.ARRHENIUS, T_SEL)

    with pytest.raises(ConfigurationError, match="ConstantRate"):
        group.add(0, ConstantRate(ln_A=1.0), 0)


def test_group_added_after_evaluation(laws):
    group = RateLawGroup(RateLawKind.ARRHENIUS, T_SEL)
    group.add(0, laws[0], 0)
    out = np.zeros(2)
    group.evaluate(_state(), out)

    group.add(1, laws[1], 1)
    group.evaluate(_state(), out)

    assert group.n_rate_coefficients == 2
    assert out[1] != 0.0


def test_empty_group_is_noop():
    group = RateLawGroup(RateLawKind.CONSTANT, T_SEL)
    out = np.full(3, 7.0)

    group.evaluate(_state(), out)
    group.subtract_equilibrium(_state(), np.zeros(2), out)

    np.testing.assert_array_equal(out, 7.0)


class TestEquilibriumSubtraction:
    @pytest.fixture
    def isomerization(self):
        # A <=> B, species order (A, B), no change in moles
        return Reaction(
            formula="A=B",
            category=ReactionCategory.EXCHANGE,
            reactants={0: 1.0},
            products={1: 1.0},
            rate_law=Arrhenius.from_A(1e10, 0.0, 10000.0),
        )

    def test_subtracts_ln_keq_exactly(self, isomerization):
        group = RateLawGroup(RateLawKind.ARRHENIUS, T_SEL)
        group.add_reaction(0, isomerization, n_species=2)
        ln_kb = np.array([4.25])
        gibbs = np.zeros(2)

        group.subtract_equilibrium(_state(gibbs=(3.0, 1.0)), gibbs, ln_kb)

        # ln Keq = -(g_B - g_A) = 2
        assert ln_kb[0] == 4.25 - 2.0
        np.testing.assert_array_equal(gibbs, [3.0, 1.0])

    def test_gibbs_evaluated_at_selector_temperature(self, isomerization):
        seen = []

        def gibbs_over_rt(T):
            seen.append(float(T))
            return jnp.zeros(2)

        state = ThermodynamicState(
            T=9000.0, Te=11000.0, Tv=4000.0, species_gibbs_over_rt=gibbs_over_rt
        )
        group = RateLawGroup(RateLawKind.ARRHENIUS, TemperatureSelector.ELECTRON)
        group.add_reaction(0, isomerization, n_species=2)

        group.subtract_equilibrium(state, np.zeros(2), np.zeros(1))

        assert seen == [11000.0]

    def test_mole_change_term(self):
        T = 5000.0
        ln_keq = ln_equilibrium_constant(
            jnp.asarray(T),
            jnp.array([0.0, 0.0]),
            jnp.array([[2.0, -1.0]]),
            jnp.array([1.0]),
        )

        expected = math.log(constants.P_ref / (constants.R_universal * T))
        assert float(ln_keq[0]) == pytest.approx(expected, rel=1e-12)


class TestRateCoefficientGroupCollection:
    def test_groups_keyed_by_kind_and_selector(self, laws):
        collection = RateCoefficientGroupCollection()
        collection.add_rate_coefficient((RateLawKind.ARRHENIUS, PARK), 0, laws[0], 0)
        collection.add_rate_coefficient((RateLawKind.ARRHENIUS, PARK), 1, laws[1], 1)
        collection.add_rate_coefficient((RateLawKind.ARRHENIUS, T_SEL), 0, laws[0], 2)

        assert len(collection) == 2
        assert (RateLawKind.ARRHENIUS, PARK) in collection
        assert collection.group((RateLawKind.ARRHENIUS, PARK)).offsets == (0, 1)

    def test_bulk_evaluation(self, laws):
        collection = RateCoefficientGroupCollection()
        collection.add_rate_coefficient((RateLawKind.ARRHENIUS, PARK), 0, laws[0], 0)
        collection.add_rate_coefficient((RateLawKind.ARRHENIUS, T_SEL), 0, laws[0], 1)
        out = np.zeros(2)

        collection.log_of_rate_coefficients(_state(), out)

        park = TemperatureTerms.from_temperature(math.sqrt(9000.0 * 4000.0))
        trans = TemperatureTerms.from_temperature(9000.0)
        assert out[0] == pytest.approx(float(rate_laws.ln_rate(laws[0], park)), rel=1e-12)
        assert out[1] == pytest.approx(float(rate_laws.ln_rate(laws[0], trans)), rel=1e-12)

    def test_derivatives_respect_limit(self, laws):
        collection = RateCoefficientGroupCollection()
        collection.add_rate_coefficient((RateLawKind.ARRHENIUS, T_SEL), 0, laws[3], 0)
        collection.add_rate_coefficient((RateLawKind.ARRHENIUS, T_SEL), 0, laws[3], 1)
        ln_k = np.zeros(2)
        collection.log_of_rate_coefficients(_state(), ln_k)

        out = np.zeros(1)
        collection.derivatives_of_rate_coefficients(_state(), ln_k, out, limit=1)

        terms = TemperatureTerms.from_temperature(9000.0)
        expected = rate_laws.derivative(laws[3], math.exp(ln_k[0]), terms)
        assert out[0] == pytest.approx(float(expected), rel=1e-12)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
