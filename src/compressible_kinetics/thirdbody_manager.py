"""Third-body efficiency corrections applied to rates of progress.

For a third-body reaction the rate of progress is multiplied by

    [M] = Σ_s w_s c_s

Every species has a default efficiency of one, so the sum is split into the
total concentration plus corrections for the species (and species groups) with
non-default efficiencies:

    [M] = Σ_s c_s + Σ_{s listed} (w_s - 1) c_s + Σ_{g listed} (w_g - 1) C_g

where C_g is the summed concentration of the members of species group g.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

import numpy as np
from jaxtyping import Float, Int

from compressible_kinetics.reaction_types import Reaction


@dataclass(frozen=True)
class SpeciesGroups:
    """Species sharing one third-body efficiency, e.g. the excited electronic
    states of one ground-state species.

    Attributes:
        members: Species indices of every group.
    """

    members: tuple[tuple[int, ...], ...] = ()

    @property
    def n_groups(self) -> int:
        return len(self.members)

    def sum_group_members_values(
        self,
        values: Float[np.ndarray, " n_species"],
        out: Float[np.ndarray, " n_groups"],
    ) -> None:
        """Write the sum of ``values`` over the members of each group to ``out``."""
        for g, members in enumerate(self.members):
            out[g] = values[list(members)].sum()


class PartialThirdbodyEfficiencies:
    """Non-default efficiencies of a single third-body reaction.

    Attributes:
        reaction_index: Position of the reaction's rate of progress.
        species: Species indices with non-default efficiency.
        species_deviations: Efficiency minus default for each listed species.
        groups: Species-group indices with non-default efficiency.
        group_deviations: w_g - 1 for each listed group.
    """

    def __init__(
        self,
        reaction_index: int,
        species_deviations: Mapping[int, float],
        group_deviations: Mapping[int, float],
    ):
        self.reaction_index = reaction_index
        species = [(s, dev) for s, dev in species_deviations.items() if dev != 0.0]
        groups = [(g, dev) for g, dev in group_deviations.items() if dev != 0.0]
        self.species: Int[np.ndarray, " n_listed"] = np.array(
            [s for s, _ in species], dtype=int
        )
        self.species_deviations: Float[np.ndarray, " n_listed"] = np.array(
            [dev for _, dev in species], dtype=float
        )
        self.groups: Int[np.ndarray, " n_listed_groups"] = np.array(
            [g for g, _ in groups], dtype=int
        )
        self.group_deviations: Float[np.ndarray, " n_listed_groups"] = np.array(
            [dev for _, dev in groups], dtype=float
        )

    def multiply_efficiencies(
        self,
        baseline: float,
        concentrations: Float[np.ndarray, " n_species"],
        group_sums: Float[np.ndarray, " n_groups"],
        rates: Float[np.ndarray, " n_reactions"],
    ) -> None:
        total = baseline
        total += concentrations[self.species] @ self.species_deviations
        total += group_sums[self.groups] @ self.group_deviations
        rates[self.reaction_index] *= total


class ThirdbodyManager:
    """Applies third-body concentration multipliers to rates of progress.

    Args:
        n_species: Number of species.
        electrons: Whether species 0 is the electron, which is then excluded
            from the default collision-partner sum.
        species_groups: Species groups of the mixture.
    """

    def __init__(
        self,
        n_species: int,
        electrons: bool = False,
        species_groups: SpeciesGroups = SpeciesGroups(),
    ):
        self._n_species = n_species
        self._offset = 1 if electrons else 0
        self._species_groups = species_groups
        self._group_sums = np.zeros(species_groups.n_groups)
        self._effs: list[PartialThirdbodyEfficiencies] = []

    @classmethod
    def from_reactions(
        cls,
        n_species: int,
        reactions: Sequence[Reaction],
        electrons: bool = False,
        species_groups: SpeciesGroups = SpeciesGroups(),
    ) -> "ThirdbodyManager":
        """Manager for every reaction flagged as a third-body reaction."""
        manager = cls(n_species, electrons, species_groups)
        for i, reaction in enumerate(reactions):
            if reaction.third_body:
                manager.add_reaction(
                    i,
                    reaction.third_body_efficiencies,
                    reaction.third_body_group_efficiencies,
                )
        return manager

    @property
    def n_reactions(self) -> int:
        return len(self._effs)

    @property
    def reactions(self) -> tuple[int, ...]:
        return tuple(effs.reaction_index for effs in self._effs)

    def add_reaction(
        self,
        reaction_index: int,
        efficiencies: Mapping[int, float] | None = None,
        group_efficiencies: Mapping[int, float] | None = None,
    ) -> None:
        """Manage a third-body reaction.

        Args:
            reaction_index: Index of the reaction's rate of progress.
            efficiencies: Species index -> efficiency. Unlisted species have 1,
                except an excluded electron, which has 0.
            group_efficiencies: Species-group index -> efficiency.
        """
        species_deviations = {
            s: w - self._default_efficiency(s) for s, w in (efficiencies or {}).items()
        }
        group_deviations = {g: w - 1.0 for g, w in (group_efficiencies or {}).items()}
        self._effs.append(
            PartialThirdbodyEfficiencies(
                reaction_index, species_deviations, group_deviations
            )
        )

    def _default_efficiency(self, species_index: int) -> float:
        return 0.0 if species_index < self._offset else 1.0

    def multiply_thirdbodies(
        self,
        concentrations: Float[np.ndarray, " n_species"],
        rates: Float[np.ndarray, " n_reactions"],
    ) -> None:
        """Multiply the managed rates of progress in place by their [M].

        Args:
            concentrations: Species molar concentrations [mol/m³].
            rates: Rates of progress [mol/m³/s]; only managed entries change.
        """
        baseline = float(np.sum(concentrations[self._offset : self._n_species]))
        self._species_groups.sum_group_members_values(
            concentrations, self._group_sums
        )
        for effs in self._effs:
            effs.multiply_efficiencies(
                baseline, concentrations, self._group_sums, rates
            )
