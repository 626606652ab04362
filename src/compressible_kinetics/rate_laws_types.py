from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import ClassVar, NamedTuple

import jax.numpy as jnp
from jaxtyping import Array, Float


class RateLawKind(enum.Enum):
    """Closed set of rate-law forms understood by the kinetics machinery."""

    ARRHENIUS = "arrhenius"
    RATIONAL_EXPONENTIAL = "rational_exponential"
    CONSTANT = "constant"
    EXPONENTIAL_RATIONAL_33 = "exponential_rational_33"


class TemperatureTerms(NamedTuple):
    """Reduced temperature inputs shared by every rate law of a group.

    Attributes:
        T: Rate-controlling temperature [K].
        ln_T: ln(T).
        inv_T: 1/T [1/K].
        T2: T² [K²].
    """

    T: Float[Array, ""]
    ln_T: Float[Array, ""]
    inv_T: Float[Array, ""]
    T2: Float[Array, ""]

    @classmethod
    def from_temperature(cls, T: float | Float[Array, ""]) -> "TemperatureTerms":
        T = jnp.asarray(T)
        return cls(T=T, ln_T=jnp.log(T), inv_T=1.0 / T, T2=T * T)


@dataclass(frozen=True)
class Arrhenius:
    """Arrhenius rate law k = A T^n exp(-θ/T).

    Attributes:
        ln_A: Natural log of the pre-exponential factor in SI units.
        n: Temperature exponent [-].
        theta: Activation temperature Ea/Ru [K].
    """

    kind: ClassVar[RateLawKind] = RateLawKind.ARRHENIUS

    ln_A: float
    n: float
    theta: float

    @classmethod
    def from_A(cls, A: float, n: float, theta: float) -> "Arrhenius":
        return cls(ln_A=math.log(A), n=n, theta=theta)

    @property
    def A(self) -> float:
        return math.exp(self.ln_A)

    def parameters(self) -> tuple[float, ...]:
        return (self.ln_A, self.n, self.theta)


@dataclass(frozen=True)
class ConstantRate:
    """Temperature independent rate k = A."""

    kind: ClassVar[RateLawKind] = RateLawKind.CONSTANT

    ln_A: float

    @classmethod
    def from_A(cls, A: float) -> "ConstantRate":
        return cls(ln_A=math.log(A))

    @property
    def A(self) -> float:
        return math.exp(self.ln_A)

    def parameters(self) -> tuple[float, ...]:
        return (self.ln_A,)


@dataclass(frozen=True)
class RationalExponentialArrhenius:
    """Arrhenius-like law with a rational pre-exponential term.

    k = T^n exp(-θ/T) (a0 + a1 T + a2 T²) / (b0 + b1 T + b2 T² + b3 T³)

    The pre-exponential magnitude is carried by the numerator coefficients.
    """

    kind: ClassVar[RateLawKind] = RateLawKind.RATIONAL_EXPONENTIAL

    n: float
    theta: float
    a0: float
    a1: float
    a2: float
    b0: float
    b1: float
    b2: float
    b3: float

    def parameters(self) -> tuple[float, ...]:
        return (
            self.n,
            self.theta,
            self.a0,
            self.a1,
            self.a2,
            self.b0,
            self.b1,
            self.b2,
            self.b3,
        )


@dataclass(frozen=True)
class ExponentialRational33:
    """Cubic-over-cubic curve fit (a0 + a1 T + a2 T² + a3 T³) / (b0 + b1 T + b2 T² + T³).

    Evaluates the bare ratio, not a logarithm. Used by energy-transfer source
    terms; it is never classified by the rate manager.
    """

    kind: ClassVar[RateLawKind] = RateLawKind.EXPONENTIAL_RATIONAL_33

    a0: float
    a1: float
    a2: float
    a3: float
    b0: float
    b1: float
    b2: float

    def parameters(self) -> tuple[float, ...]:
        return (self.a0, self.a1, self.a2, self.a3, self.b0, self.b1, self.b2)


RateLaw = Arrhenius | ConstantRate | RationalExponentialArrhenius | ExponentialRational33
