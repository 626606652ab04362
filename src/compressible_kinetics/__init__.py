"""Rate-coefficient evaluation for multi-temperature reacting-gas kinetics."""

from .errors import ConfigurationError
from .rate_laws_types import (
    Arrhenius,
    ConstantRate,
    ExponentialRational33,
    RateLawKind,
    RationalExponentialArrhenius,
    TemperatureTerms,
)
from .rate_laws_utils import RateLawUnitConfig, RateLawUnits, rate_law_from_dict
from .reaction_types import (
    Reaction,
    ReactionCategory,
    TemperatureSelector,
    ThermodynamicState,
    rate_selectors,
)
from .rate_law_groups import RateCoefficientGroupCollection, RateLawGroup
from .rate_manager import RateManager
from .thirdbody_manager import SpeciesGroups, ThirdbodyManager

__all__ = [
    "ConfigurationError",
    "Arrhenius",
    "ConstantRate",
    "ExponentialRational33",
    "RateLawKind",
    "RationalExponentialArrhenius",
    "TemperatureTerms",
    "RateLawUnitConfig",
    "RateLawUnits",
    "rate_law_from_dict",
    "Reaction",
    "ReactionCategory",
    "TemperatureSelector",
    "ThermodynamicState",
    "rate_selectors",
    "RateCoefficientGroupCollection",
    "RateLawGroup",
    "RateManager",
    "SpeciesGroups",
    "ThirdbodyManager",
]
