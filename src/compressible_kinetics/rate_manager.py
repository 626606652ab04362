"""Forward and backward rate coefficients of a reaction mechanism.

The manager classifies every reaction once at construction. Each reaction's
forward rate law is placed in the group of its (rate-law kind, forward
temperature) pair. For a reversible reaction the same law is evaluated again at
the reverse temperature, unless both temperatures coincide, in which case the
forward value is copied. The backward coefficient then follows from detailed
balance:

    ln k_b(T_b) = ln k_f(T_b) - ln K_eq(T_b)
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from compressible_kinetics.errors import ConfigurationError
from compressible_kinetics.rate_law_groups import RateCoefficientGroupCollection
from compressible_kinetics.rate_laws_types import RateLawKind
from compressible_kinetics.reaction_types import (
    Reaction,
    ThermodynamicState,
    rate_selectors,
)

logger = logging.getLogger(__name__)

SUPPORTED_RATE_LAWS = frozenset(
    {RateLawKind.ARRHENIUS, RateLawKind.RATIONAL_EXPONENTIAL, RateLawKind.CONSTANT}
)


class RateManager:
    """Evaluates ln(k_f) and ln(k_b) for every reaction of a mechanism.

    Storage is one block of size 2 * n_reactions + n_species holding ln(k_f),
    ln(k_b) and the species G/(Ru T) scratch values, in that order. The views
    ``ln_kf``, ``ln_kb`` and ``gibbs`` keep their addresses for the lifetime of
    the manager. Entries of ``ln_kb`` belonging to irreversible reactions are
    never written.

    Args:
        n_species: Number of species in the mixture.
        reactions: Ordered reactions; reaction i writes ln_kf[i] and ln_kb[i].

    Raises:
        ConfigurationError: If a reaction uses a rate law the manager cannot
            evaluate.
    """

    def __init__(self, n_species: int, reactions: Sequence[Reaction]):
        self._n_species = n_species
        self._n_reactions = len(reactions)
        self._groups = RateCoefficientGroupCollection()
        self._to_copy: list[int] = []
        self._irreversible: list[int] = []

        for i, reaction in enumerate(reactions):
            self._add_reaction(i, reaction)

        nr = self._n_reactions
        self._block = np.zeros(2 * nr + n_species)
        self.ln_kf = self._block[:nr]
        self.ln_kb = self._block[nr : 2 * nr]
        self.gibbs = self._block[2 * nr :]

        self._to_copy_array = np.array(self._to_copy, dtype=int)
        self._dkf_dT = np.zeros(nr)

        logger.debug(
            "Classified %d reactions into %d rate-law groups "
            "(%d copied reverse rates, %d irreversible).",
            nr,
            len(self._groups),
            len(self._to_copy),
            len(self._irreversible),
        )

    def _add_reaction(self, i: int, reaction: Reaction) -> None:
        law = reaction.rate_law
        if law.kind not in SUPPORTED_RATE_LAWS:
            raise ConfigurationError(
                "rate law",
                type(law).__name__,
                f"rate law is not implemented in RateManager (reaction {i}: "
                f"{reaction.formula})",
            )

        forward, reverse = rate_selectors(reaction.category)
        forward_key = (law.kind, forward)
        reverse_key = (law.kind, reverse)

        self._groups.add_rate_coefficient(forward_key, i, law, i)

        if not reaction.reversible:
            self._irreversible.append(i)
            return

        if forward is reverse:
            # Forward value already equals k_f(T_b)
            self._to_copy.append(i)
        else:
            self._groups.add_rate_coefficient(
                reverse_key, i, law, self._n_reactions + i
            )

        self._groups.add_reaction(reverse_key, i, reaction, self._n_species)

    @property
    def n_species(self) -> int:
        return self._n_species

    @property
    def n_reactions(self) -> int:
        return self._n_reactions

    @property
    def groups(self) -> RateCoefficientGroupCollection:
        return self._groups

    @property
    def shortcut_reactions(self) -> tuple[int, ...]:
        """Reversible reactions whose reverse-temperature rate is the forward one."""
        return tuple(self._to_copy)

    @property
    def irreversible_reactions(self) -> tuple[int, ...]:
        return tuple(self._irreversible)

    def update(self, state: ThermodynamicState) -> None:
        """Recompute ln_kf and ln_kb for the given state.

        The passes run in order: group evaluation, forward-to-reverse copies,
        equilibrium subtraction.
        """
        self._groups.log_of_rate_coefficients(state, self._block)

        self.ln_kb[self._to_copy_array] = self.ln_kf[self._to_copy_array]

        self._groups.subtract_ln_keq(state, self.gibbs, self.ln_kb)

    def forward_rate_derivatives(self, state: ThermodynamicState) -> np.ndarray:
        """dk_f/dT_q of every reaction with respect to its forward temperature.

        Uses the ln_kf values of the last ``update`` with the same state.

        Returns:
            View of an owned buffer of shape [n_reactions], overwritten on each
            call.
        """
        self._groups.derivatives_of_rate_coefficients(
            state, self._block, self._dkf_dT, limit=self._n_reactions
        )
        return self._dkf_dT
