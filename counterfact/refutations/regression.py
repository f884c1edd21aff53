from __future__ import annotations

import numpy as np

from ..sampling import RandomState, as_generator
from ._check import RefutationCheck

_RCC_SEED = 54321
_RCC_COL = "_rcc"


def _check_random_common_cause(
    design,
    outcome: np.ndarray,
    treatment: str,
    original_effect: float,
    original_se: float,
    rng: RandomState = _RCC_SEED,
) -> RefutationCheck:
    """
    Add a pure-noise regressor to the design and refit.

    Noise cannot be a common cause of anything, so the treatment coefficient
    should not move by more than one standard error. A larger shift means
    the estimate is fragile to irrelevant controls.
    """
    from ..estimators.regression import LeastSquares

    col = _RCC_COL
    while col in design.names:
        col = "_" + col

    noise = as_generator(rng).normal(size=design.nobs)
    augmented = design.add(col, noise)
    new_effect = LeastSquares(augmented, treatment=treatment).fit(outcome).effect

    shift = abs(new_effect - original_effect)
    passed = shift <= original_se

    if passed:
        detail = f"estimate shifted by {shift:.4f}  (≤ 1 SE = {original_se:.4f})"
    else:
        detail = (
            f"estimate shifted by {shift:.4f}  (> 1 SE = {original_se:.4f})  "
            f"Adding a random regressor destabilised the estimate."
        )
    return RefutationCheck(name="Random common cause", passed=passed, detail=detail)
