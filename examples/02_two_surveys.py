"""
Two disjoint random surveys.

A treatment survey records Y1 for 1,000 random people and a separate control
survey records Y0 for another 1,000. Nobody appears in both, yet

    E[Y1 | S=1] - E[Y0 | S=2]

is an unbiased estimate of the population ATE.
"""

import numpy as np

from counterfact import DesignMatrix, DifferenceInMeans, LeastSquares, PopulationBuilder, partition

rng = np.random.default_rng(0)
N, n = 10_000, 1_000

pop = PopulationBuilder(N, rng).baseline(100, 25, bounds=(0, 200)).effect(5, 2).build()
surveys = partition(N, {"treatment survey": n, "control survey": n}, rng)
print(surveys)

pop = pop.with_selection(surveys)
treated = pop.select("treatment survey").y1
control = pop.select("control survey").y0

print(f"Population ATE: {pop.ate:.4f}")
print(DifferenceInMeans(ci="normal").fit(treated, control).summary())

y = np.concatenate([treated, control])
d = np.concatenate([np.ones(n), np.zeros(n)])
print(LeastSquares(DesignMatrix.for_treatment(d)).fit(y).summary())
