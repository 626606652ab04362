"""Batched evaluation of rate coefficients sharing a rate law and temperature.

A group collects every rate coefficient with the same (rate-law kind,
temperature selector) pair. The controlling temperature, its logarithm and
its inverse are computed once per pass and the law kernel is applied to all
entries at once. The results are written into a flat ln(k) buffer where the
forward coefficient of reaction i lives at offset i and the reverse-temperature
coefficient at offset n_reactions + i.
"""

from __future__ import annotations

import math
from typing import Iterator

import jax.numpy as jnp
import numpy as np
from jaxtyping import Array, Float, Int

from compressible_kinetics import constants, rate_laws
from compressible_kinetics.errors import ConfigurationError
from compressible_kinetics.rate_laws_types import RateLaw, RateLawKind, TemperatureTerms
from compressible_kinetics.reaction_types import (
    Reaction,
    TemperatureSelector,
    ThermodynamicState,
)

GroupKey = tuple[RateLawKind, TemperatureSelector]


def ln_equilibrium_constant(
    T: Float[Array, ""],
    gibbs_over_rt: Float[Array, " n_species"],
    net_stoich: Float[Array, "n_reactions n_species"],
    delta_nu: Float[Array, " n_reactions"],
) -> Float[Array, " n_reactions"]:
    """Concentration-based equilibrium constants from standard-state Gibbs energies.

    ln K_c = -Σ_s ν_s G_s/(Ru T) + Δν ln(P_ref / (Ru T))

    Args:
        T: Temperature at which the Gibbs energies were evaluated [K].
        gibbs_over_rt: Standard-state G_s/(Ru T) [-]. Shape [n_species].
        net_stoich: Net stoichiometry ν (products - reactants).
            Shape [n_reactions, n_species].
        delta_nu: Σ_s ν_s per reaction. Shape [n_reactions].

    Returns:
        ln K_c with K_c in SI concentration units. Shape [n_reactions].
    """
    ln_Kp = -(net_stoich @ gibbs_over_rt)
    return ln_Kp + delta_nu * jnp.log(constants.P_ref / (constants.R_universal * T))


class RateLawGroup:
    """Rate coefficients sharing one (rate-law kind, selector) pair."""

    def __init__(self, kind: RateLawKind, selector: TemperatureSelector):
        self.kind = kind
        self.selector = selector
        self._ln_rate = rate_laws.ln_rate_kernel(kind)
        self._derivative = rate_laws.derivative_kernel(kind)

        self._laws: list[RateLaw] = []
        self._offsets: list[int] = []
        self._params: Float[Array, "n_entries n_params"] | None = None
        self._offset_array: Int[np.ndarray, " n_entries"] | None = None

        self._reactions: list[int] = []
        self._net_stoich: list[np.ndarray] = []
        self._delta_nu: list[float] = []
        self._equilibrium_arrays: (
            tuple[
                Int[np.ndarray, " n_reactions"],
                Float[Array, "n_reactions n_species"],
                Float[Array, " n_reactions"],
            ]
            | None
        ) = None

    @property
    def key(self) -> GroupKey:
        return (self.kind, self.selector)

    @property
    def n_rate_coefficients(self) -> int:
        return len(self._laws)

    @property
    def n_reactions(self) -> int:
        """Number of reactions registered for equilibrium subtraction."""
        return len(self._reactions)

    @property
    def offsets(self) -> tuple[int, ...]:
        return tuple(self._offsets)

    @property
    def reactions(self) -> tuple[int, ...]:
        return tuple(self._reactions)

    def add(self, reaction_index: int, law: RateLaw, target_offset: int) -> None:
        """Register one rate coefficient written to ``out[target_offset]``."""
        if law.kind is not self.kind:
            raise ConfigurationError(
                "rate law",
                type(law).__name__,
                f"reaction {reaction_index} cannot join a {self.kind.name} group",
            )
        self._laws.append(law)
        self._offsets.append(target_offset)
        self._params = None
        self._offset_array = None

    def add_reaction(
        self, reaction_index: int, reaction: Reaction, n_species: int
    ) -> None:
        """Register a reversible reaction for the equilibrium-subtraction pass."""
        self._reactions.append(reaction_index)
        self._net_stoich.append(reaction.net_stoich(n_species))
        self._delta_nu.append(reaction.delta_nu)
        self._equilibrium_arrays = None

    def _rate_arrays(self):
        if self._params is None:
            self._params = rate_laws.stack_parameters(self._laws)
            self._offset_array = np.array(self._offsets, dtype=int)
        return self._params, self._offset_array

    def _equilibrium(self):
        if self._equilibrium_arrays is None:
            self._equilibrium_arrays = (
                np.array(self._reactions, dtype=int),
                jnp.array(np.stack(self._net_stoich)),
                jnp.array(self._delta_nu),
            )
        return self._equilibrium_arrays

    def temperature_terms(self, state: ThermodynamicState) -> TemperatureTerms:
        return TemperatureTerms.from_temperature(self.selector.eval_temperature(state))

    def evaluate(self, state: ThermodynamicState, out: np.ndarray) -> None:
        """Write ln(k) of every entry to its target offset in ``out``."""
        if not self._laws:
            return
        params, offsets = self._rate_arrays()
        terms = self.temperature_terms(state)
        out[offsets] = np.asarray(self._ln_rate(params, terms))

    def evaluate_derivatives(
        self,
        state: ThermodynamicState,
        ln_k: np.ndarray,
        out: np.ndarray,
        limit: int | None = None,
    ) -> None:
        """Write dk/dT of every entry with offset below ``limit`` to ``out``.

        ``ln_k`` must hold the values written by ``evaluate`` for the same state.
        """
        if not self._laws:
            return
        params, offsets = self._rate_arrays()
        mask = offsets < (math.inf if limit is None else limit)
        if not np.any(mask):
            return
        terms = self.temperature_terms(state)
        k = jnp.exp(jnp.asarray(ln_k[offsets[mask]]))
        out[offsets[mask]] = np.asarray(self._derivative(params[mask], k, terms))

    def subtract_equilibrium(
        self, state: ThermodynamicState, gibbs: np.ndarray, ln_kb: np.ndarray
    ) -> None:
        """Subtract ln(K_eq) at the selector temperature from ``ln_kb``.

        ``gibbs`` is scratch storage of size n_species filled with the
        standard-state G/(Ru T) at the selector temperature.
        """
        if not self._reactions:
            return
        reactions, net_stoich, delta_nu = self._equilibrium()
        T = self.selector.eval_temperature(state)
        gibbs[:] = np.asarray(state.species_gibbs_over_rt(T))
        ln_keq = ln_equilibrium_constant(T, jnp.asarray(gibbs), net_stoich, delta_nu)
        ln_kb[reactions] -= np.asarray(ln_keq)


class RateCoefficientGroupCollection:
    """Owns every forward and reverse rate-law group of a mechanism."""

    def __init__(self):
        self._groups: dict[GroupKey, RateLawGroup] = {}

    def __len__(self) -> int:
        return len(self._groups)

    def __iter__(self) -> Iterator[RateLawGroup]:
        return iter(self._groups.values())

    def __contains__(self, key: GroupKey) -> bool:
        return key in self._groups

    def group(self, key: GroupKey) -> RateLawGroup:
        """Return the group for ``key``, creating it on first use."""
        if key not in self._groups:
            self._groups[key] = RateLawGroup(*key)
        return self._groups[key]

    def add_rate_coefficient(
        self, key: GroupKey, reaction_index: int, law: RateLaw, target_offset: int
    ) -> None:
        self.group(key).add(reaction_index, law, target_offset)

    def add_reaction(
        self, key: GroupKey, reaction_index: int, reaction: Reaction, n_species: int
    ) -> None:
        self.group(key).add_reaction(reaction_index, reaction, n_species)

    def log_of_rate_coefficients(
        self, state: ThermodynamicState, out: np.ndarray
    ) -> None:
        for group in self._groups.values():
            group.evaluate(state, out)

    def subtract_ln_keq(
        self, state: ThermodynamicState, gibbs: np.ndarray, ln_kb: np.ndarray
    ) -> None:
        for group in self._groups.values():
            group.subtract_equilibrium(state, gibbs, ln_kb)

    def derivatives_of_rate_coefficients(
        self,
        state: ThermodynamicState,
        ln_k: np.ndarray,
        out: np.ndarray,
        limit: int | None = None,
    ) -> None:
        for group in self._groups.values():
            group.evaluate_derivatives(state, ln_k, out, limit)
