"""
Decomposition of the simple difference in mean outcomes (SDO).

Comparing the observed mean outcome of treated and untreated units gives

    SDO = E[Y1 | D=1] - E[Y0 | D=0]
        = ATE
        + (E[Y0 | D=1] - E[Y0 | D=0])        selection bias
        + (1 - pi) * (ATT - ATU)             heterogeneous treatment effect bias

where ``pi`` is the share treated. The identity is exact in any finite
population, so with both potential outcomes known each term can be
computed directly.
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ._exceptions import SampleError
from .population import Population


@dataclass(frozen=True)
class SDODecomposition:
    sdo: float
    ate: float
    att: float
    atu: float
    selection_bias: float
    heterogeneity_bias: float
    share_treated: float

    def summary(self) -> str:
        lines = [
            "",
            "Simple Difference in Outcomes",
            "─" * 50,
            f"  SDO                  : {self.sdo:>10.4f}",
            f"    = ATE              : {self.ate:>10.4f}",
            f"    + selection bias   : {self.selection_bias:>+10.4f}",
            f"    + HTE bias         : {self.heterogeneity_bias:>+10.4f}",
            "",
            f"  ATT                  : {self.att:>10.4f}",
            f"  ATU                  : {self.atu:>10.4f}",
            f"  Share treated        : {self.share_treated:>10.4f}",
            "",
        ]
        return "\n".join(lines)


def decompose(population: Population) -> SDODecomposition:
    """
    Split the naive treated-vs-untreated comparison into ATE and bias terms.

    Raises
    ------
    SampleError
        If the population has no treatment assignment, or everyone (or no one)
        is treated.
    """
    if population.treatment is None:
        raise SampleError("Decomposition needs a treatment assignment; call with_treatment() first.")
    d = population.treatment.astype(bool)
    if d.all() or not d.any():
        raise SampleError("Decomposition needs both treated and untreated individuals.")

    y0, y1 = population.y0, population.y1
    pi = float(d.mean())
    att, atu = population.att, population.atu

    return SDODecomposition(
        sdo=float(np.mean(y1[d]) - np.mean(y0[~d])),
        ate=population.ate,
        att=att,
        atu=atu,
        selection_bias=float(np.mean(y0[d]) - np.mean(y0[~d])),
        heterogeneity_bias=(1 - pi) * (att - atu),
        share_treated=pi,
    )
