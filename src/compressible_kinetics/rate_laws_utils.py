from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Mapping

from compressible_kinetics import constants
from compressible_kinetics.errors import ConfigurationError
from compressible_kinetics.rate_laws_types import (
    Arrhenius,
    ConstantRate,
    ExponentialRational33,
    RateLaw,
    RateLawKind,
    RationalExponentialArrhenius,
)

# Multipliers converting each unit to SI base units
_LENGTH_UNITS = {"m": 1.0, "dm": 1e-1, "cm": 1e-2, "mm": 1e-3}
_QUANTITY_UNITS = {"mol": 1.0, "kmol": 1e3, "molecule": 1.0 / constants.N_A}
_TIME_UNITS = {"s": 1.0, "ms": 1e-3, "us": 1e-6, "min": 60.0, "h": 3600.0}
_TEMPERATURE_UNITS = {"K": 1.0}

# Multipliers converting an activation energy to an activation temperature [K]
_ENERGY_UNITS = {
    "K": 1.0,
    "J/mol": 1.0 / constants.R_universal,
    "kJ/mol": 1e3 / constants.R_universal,
    "cal/mol": constants.calorie / constants.R_universal,
    "kcal/mol": 1e3 * constants.calorie / constants.R_universal,
    "eV": constants.e / constants.k,
}
_ENERGY_ALIASES = {"J": "J/mol", "kJ": "kJ/mol", "cal": "cal/mol", "kcal": "kcal/mol"}


def _lookup_unit(table: dict[str, float], token: str, what: str, units: str) -> float:
    try:
        return table[token]
    except KeyError:
        raise ConfigurationError(
            "units",
            units,
            f"unknown {what} unit '{token}', expected one of {sorted(table)}",
        )


@dataclass(frozen=True)
class RateLawUnits:
    """Input units of the pre-exponential factor and activation energy.

    Attributes:
        A_units: Comma separated "length,quantity,time,temperature" units of the
            pre-exponential factor, e.g. "cm,mol,s,K".
        E_units: Units of the activation energy, e.g. "K", "kcal/mol", "eV".
    """

    A_units: str = "m,mol,s,K"
    E_units: str = "K"

    def __post_init__(self):
        tokens = [token.strip() for token in self.A_units.split(",")]
        if len(tokens) != 4:
            raise ConfigurationError(
                "units",
                self.A_units,
                "pre-exponential units must list length,quantity,time,temperature",
            )
        length, quantity, time, temperature = tokens
        _lookup_unit(_LENGTH_UNITS, length, "length", self.A_units)
        _lookup_unit(_QUANTITY_UNITS, quantity, "quantity", self.A_units)
        _lookup_unit(_TIME_UNITS, time, "time", self.A_units)
        _lookup_unit(_TEMPERATURE_UNITS, temperature, "temperature", self.A_units)

        E_units = _ENERGY_ALIASES.get(self.E_units.strip(), self.E_units.strip())
        _lookup_unit(_ENERGY_UNITS, E_units, "energy", self.E_units)

    def A_factor(self, order: float, n: float = 0.0) -> float:
        """Multiplier converting A to SI units (m³/mol)^(order-1) s⁻¹ K⁻ⁿ."""
        length, quantity, time, temperature = (
            token.strip() for token in self.A_units.split(",")
        )
        volume = _LENGTH_UNITS[length] ** 3 / _QUANTITY_UNITS[quantity]
        return (
            volume ** (order - 1.0)
            / _TIME_UNITS[time]
            / _TEMPERATURE_UNITS[temperature] ** n
        )

    @property
    def E_factor(self) -> float:
        """Multiplier converting the activation energy to Ea/Ru [K]."""
        E_units = _ENERGY_ALIASES.get(self.E_units.strip(), self.E_units.strip())
        return _ENERGY_UNITS[E_units]


@dataclass(frozen=True)
class RateLawUnitConfig:
    """Input units for every rate-law kind, passed explicitly to the loaders."""

    arrhenius: RateLawUnits = field(default_factory=RateLawUnits)
    rational_exponential: RateLawUnits = field(default_factory=RateLawUnits)
    constant: RateLawUnits = field(default_factory=RateLawUnits)

    def units_for(self, kind: RateLawKind) -> RateLawUnits:
        if kind is RateLawKind.ARRHENIUS:
            return self.arrhenius
        if kind is RateLawKind.RATIONAL_EXPONENTIAL:
            return self.rational_exponential
        if kind is RateLawKind.CONSTANT:
            return self.constant
        # Curve fits are used as given
        return RateLawUnits()


def _require_float(entry: Mapping, key: str, law_name: str) -> float:
    if key not in entry:
        raise ConfigurationError(
            "rate law field", f"{law_name}.{key}", "missing required field"
        )
    return _to_float(entry[key], key, law_name)


def _optional_float(entry: Mapping, key: str, law_name: str, default: float) -> float:
    if key not in entry:
        return default
    return _to_float(entry[key], key, law_name)


def _to_float(value: object, key: str, law_name: str) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(
            "rate law field", f"{law_name}.{key}", f"expected a number, got {value!r}"
        )
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            "rate law field", f"{law_name}.{key}", f"expected a number, got {value!r}"
        )


def _positive_pre_exponential(A: float, law_name: str) -> float:
    if not A > 0.0:
        raise ConfigurationError(
            "rate law field", f"{law_name}.A", f"must be positive, got {A}"
        )
    return A


def _parse_arrhenius(entry: Mapping, order: float, units: RateLawUnits) -> Arrhenius:
    A = _positive_pre_exponential(_require_float(entry, "A", "arrhenius"), "arrhenius")
    n = _optional_float(entry, "n", "arrhenius", 0.0)
    Ea = _optional_float(entry, "Ea", "arrhenius", 0.0)
    return Arrhenius(
        ln_A=math.log(A * units.A_factor(order, n)),
        n=n,
        theta=Ea * units.E_factor,
    )


def _parse_constant(entry: Mapping, order: float, units: RateLawUnits) -> ConstantRate:
    A = _positive_pre_exponential(_require_float(entry, "A", "constant"), "constant")
    return ConstantRate(ln_A=math.log(A * units.A_factor(order)))


def _parse_rational_exponential(
    entry: Mapping, order: float, units: RateLawUnits
) -> RationalExponentialArrhenius:
    name = "rational_exponential"
    n = _optional_float(entry, "n", name, 0.0)
    Ea = _optional_float(entry, "Ea", name, 0.0)
    # The numerator carries the pre-exponential units
    A_factor = units.A_factor(order, n)
    return RationalExponentialArrhenius(
        n=n,
        theta=Ea * units.E_factor,
        a0=_require_float(entry, "a0", name) * A_factor,
        a1=_optional_float(entry, "a1", name, 0.0) * A_factor,
        a2=_optional_float(entry, "a2", name, 0.0) * A_factor,
        b0=_require_float(entry, "b0", name),
        b1=_optional_float(entry, "b1", name, 0.0),
        b2=_optional_float(entry, "b2", name, 0.0),
        b3=_optional_float(entry, "b3", name, 0.0),
    )


def _parse_exponential_rational_33(
    entry: Mapping, order: float, units: RateLawUnits
) -> ExponentialRational33:
    name = "exponential_rational_33"
    return ExponentialRational33(
        *(_optional_float(entry, key, name, 0.0) for key in ("a0", "a1", "a2", "a3")),
        *(_optional_float(entry, key, name, 0.0) for key in ("b0", "b1", "b2")),
    )


_PARSERS = {
    RateLawKind.ARRHENIUS: _parse_arrhenius,
    RateLawKind.CONSTANT: _parse_constant,
    RateLawKind.RATIONAL_EXPONENTIAL: _parse_rational_exponential,
    RateLawKind.EXPONENTIAL_RATIONAL_33: _parse_exponential_rational_33,
}


def rate_law_from_dict(
    entry: Mapping,
    order: float,
    unit_config: RateLawUnitConfig = RateLawUnitConfig(),
) -> RateLaw:
    """Build a rate law from a mechanism entry.

    The entry must carry a "type" key naming the law ("arrhenius", "constant",
    "rational_exponential", "exponential_rational_33") plus its coefficients in
    the units declared for that kind in ``unit_config``.

    Args:
        entry: Mapping with the rate-law fields.
        order: Reaction order used to convert the pre-exponential units.
        unit_config: Input units per rate-law kind.

    Returns:
        Rate law with coefficients in SI units and activation temperatures in K.

    Raises:
        ConfigurationError: If the type is unknown or a field is missing or
            not numeric.
    """
    if "type" not in entry:
        raise ConfigurationError("rate law", str(dict(entry)), "missing 'type'")
    type_name = str(entry["type"]).strip().lower()
    try:
        kind = RateLawKind(type_name)
    except ValueError:
        raise ConfigurationError(
            "rate law",
            type_name,
            f"expected one of {[kind.value for kind in RateLawKind]}",
        )
    return _PARSERS[kind](entry, order, unit_config.units_for(kind))
