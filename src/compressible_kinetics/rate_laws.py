"""Rate-law kernels.

Every kernel takes a parameter matrix with one row per rate law (columns in
the order of ``RateLaw.parameters()``) and the temperature terms of the
rate-controlling temperature, and returns one value per row. Groups evaluate
many laws of one kind in a single call; a single law goes through the same
kernel with a one-row matrix, so both paths share the arithmetic.

Key equations:
    - Arrhenius: ln k = ln A + n ln T - θ/T
    - Constant: ln k = ln A
    - Rational exponential: ln k = n ln T - θ/T + ln(P(T)/Q(T))
"""

from typing import Callable, Sequence

import jax.numpy as jnp
from jaxtyping import Array, Float

from compressible_kinetics.errors import ConfigurationError
from compressible_kinetics.rate_laws_types import (
    ExponentialRational33,
    RateLaw,
    RateLawKind,
    TemperatureTerms,
)

LnRateKernel = Callable[
    [Float[Array, "n_entries n_params"], TemperatureTerms],
    Float[Array, " n_entries"],
]
DerivativeKernel = Callable[
    [Float[Array, "n_entries n_params"], Float[Array, " n_entries"], TemperatureTerms],
    Float[Array, " n_entries"],
]


def arrhenius_ln_rate(
    params: Float[Array, "n_entries 3"], terms: TemperatureTerms
) -> Float[Array, " n_entries"]:
    ln_A, n, theta = params[:, 0], params[:, 1], params[:, 2]
    return ln_A + n * terms.ln_T - theta * terms.inv_T


def arrhenius_derivative(
    params: Float[Array, "n_entries 3"],
    k: Float[Array, " n_entries"],
    terms: TemperatureTerms,
) -> Float[Array, " n_entries"]:
    """dk/dT = k (1/T) (n + θ/T)."""
    n, theta = params[:, 1], params[:, 2]
    return k * terms.inv_T * (n + theta * terms.inv_T)


def constant_ln_rate(
    params: Float[Array, "n_entries 1"], terms: TemperatureTerms
) -> Float[Array, " n_entries"]:
    return params[:, 0]


def constant_derivative(
    params: Float[Array, "n_entries 1"],
    k: Float[Array, " n_entries"],
    terms: TemperatureTerms,
) -> Float[Array, " n_entries"]:
    return jnp.zeros_like(k)


def _rational_polynomials(
    params: Float[Array, "n_entries 9"], terms: TemperatureTerms
) -> tuple[Float[Array, " n_entries"], Float[Array, " n_entries"]]:
    a0, a1, a2 = params[:, 2], params[:, 3], params[:, 4]
    b0, b1, b2, b3 = params[:, 5], params[:, 6], params[:, 7], params[:, 8]
    numerator = a0 + a1 * terms.T + a2 * terms.T2
    denominator = b0 + b1 * terms.T + b2 * terms.T2 + b3 * terms.T2 * terms.T
    return numerator, denominator


def rational_exponential_ln_rate(
    params: Float[Array, "n_entries 9"], terms: TemperatureTerms
) -> Float[Array, " n_entries"]:
    n, theta = params[:, 0], params[:, 1]
    numerator, denominator = _rational_polynomials(params, terms)
    return n * terms.ln_T - theta * terms.inv_T + jnp.log(numerator / denominator)


def rational_exponential_derivative(
    params: Float[Array, "n_entries 9"],
    k: Float[Array, " n_entries"],
    terms: TemperatureTerms,
) -> Float[Array, " n_entries"]:
    """Arrhenius part plus the quotient-rule derivative of ln(P/Q)."""
    n, theta = params[:, 0], params[:, 1]
    a1, a2 = params[:, 3], params[:, 4]
    b1, b2, b3 = params[:, 6], params[:, 7], params[:, 8]
    numerator, denominator = _rational_polynomials(params, terms)
    return k * (
        terms.inv_T * (n + theta * terms.inv_T)
        + (a1 + 2.0 * a2 * terms.T) / numerator
        - (b1 + 2.0 * b2 * terms.T + 3.0 * b3 * terms.T2) / denominator
    )


def exponential_rational_33(
    params: Float[Array, "n_entries 7"], T: Float[Array, "..."]
) -> Float[Array, "n_entries ..."]:
    """(a0 + a1 T + a2 T² + a3 T³) / (b0 + b1 T + b2 T² + T³), Horner form."""
    T = jnp.asarray(T)
    # Broadcast coefficients [n_entries] against T [...] -> [n_entries, ...]
    columns = params.reshape(params.shape[:1] + (1,) * T.ndim + params.shape[1:])
    a0, a1, a2, a3 = (columns[..., i] for i in range(4))
    b0, b1, b2 = (columns[..., i] for i in range(4, 7))
    return (a0 + (a1 + (a2 + a3 * T) * T) * T) / (b0 + (b1 + (b2 + T) * T) * T)


LN_RATE_KERNELS: dict[RateLawKind, LnRateKernel] = {
    RateLawKind.ARRHENIUS: arrhenius_ln_rate,
    RateLawKind.CONSTANT: constant_ln_rate,
    RateLawKind.RATIONAL_EXPONENTIAL: rational_exponential_ln_rate,
}

DERIVATIVE_KERNELS: dict[RateLawKind, DerivativeKernel] = {
    RateLawKind.ARRHENIUS: arrhenius_derivative,
    RateLawKind.CONSTANT: constant_derivative,
    RateLawKind.RATIONAL_EXPONENTIAL: rational_exponential_derivative,
}


def stack_parameters(laws: Sequence[RateLaw]) -> Float[Array, "n_entries n_params"]:
    """Stack the parameters of laws of one kind into a kernel input matrix."""
    return jnp.array([law.parameters() for law in laws])


def ln_rate_kernel(kind: RateLawKind) -> LnRateKernel:
    try:
        return LN_RATE_KERNELS[kind]
    except KeyError:
        raise ConfigurationError(
            "rate law", kind.name, "no logarithmic rate kernel for this kind"
        )


def derivative_kernel(kind: RateLawKind) -> DerivativeKernel:
    try:
        return DERIVATIVE_KERNELS[kind]
    except KeyError:
        raise ConfigurationError(
            "rate law", kind.name, "no derivative kernel for this kind"
        )


def ln_rate(law: RateLaw, terms: TemperatureTerms) -> Float[Array, ""]:
    """ln k of a single rate law at the given temperature terms."""
    return ln_rate_kernel(law.kind)(stack_parameters([law]), terms)[0]


def derivative(law: RateLaw, k: float, terms: TemperatureTerms) -> Float[Array, ""]:
    """dk/dT of a single rate law, given k already evaluated at the same terms."""
    return derivative_kernel(law.kind)(
        stack_parameters([law]), jnp.atleast_1d(k), terms
    )[0]


def evaluate_exponential_rational_33(
    law: ExponentialRational33, T: float | Float[Array, "..."]
) -> Float[Array, "..."]:
    return exponential_rational_33(stack_parameters([law]), jnp.asarray(T))[0]
