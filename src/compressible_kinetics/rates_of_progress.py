import jax.numpy as jnp
import numpy as np
from jaxtyping import Array, Bool, Float


def rates_of_progress(
    ln_kf: Float[np.ndarray, " n_reactions"],
    ln_kb: Float[np.ndarray, " n_reactions"],
    concentrations: Float[np.ndarray, " n_species"],
    reactant_stoich: Float[Array, "n_reactions n_species"],
    product_stoich: Float[Array, "n_reactions n_species"],
    reversible: Bool[np.ndarray, " n_reactions"],
) -> Float[np.ndarray, " n_reactions"]:
    """Net rates of progress R_f - R_b of every reaction.

        R_f,r = k_f,r ∏_s c_s^{α_s,r}
        R_b,r = k_b,r ∏_s c_s^{β_s,r}

    The backward term is only formed for reversible reactions, so ln_kb entries
    of irreversible reactions are never read.

    Args:
        ln_kf: ln of forward rate coefficients [SI]. Shape [n_reactions].
        ln_kb: ln of backward rate coefficients [SI]. Shape [n_reactions].
        concentrations: Molar concentrations [mol/m³]. Shape [n_species].
        reactant_stoich: Reactant stoichiometry α. Shape [n_reactions, n_species].
        product_stoich: Product stoichiometry β. Shape [n_reactions, n_species].
        reversible: Reversibility flags. Shape [n_reactions].

    Returns:
        Writable array of net rates of progress [mol/m³/s]. Shape [n_reactions].
    """
    c = jnp.asarray(concentrations)

    forward = jnp.exp(jnp.asarray(ln_kf)) * jnp.prod(
        c[None, :] ** reactant_stoich, axis=1
    )
    rates = np.array(forward)

    rev = np.flatnonzero(reversible)
    if rev.size:
        backward = jnp.exp(jnp.asarray(ln_kb[rev])) * jnp.prod(
            c[None, :] ** product_stoich[rev], axis=1
        )
        rates[rev] -= np.asarray(backward)

    return rates
