"""
Ground truth: the ATE when both potential outcomes are known.

    Y0 ~ N(100, 25), clamped to [0, 200]
    Y1 = Y0 + N(5, 2)

With everyone's Y0 and Y1 in hand, the difference in means over the full
population is the ATE (about 5). The OLS coefficient on a treatment dummy
over the stacked outcomes is the same number.
"""

from counterfact import DifferenceInMeans, PopulationBuilder
from counterfact.simulations import SimulationConfig, ground_truth

N = 100_000

pop = (
    PopulationBuilder(N, rng=1)
    .baseline(100, 25, bounds=(0, 200))
    .effect(5, 2)
    .build()
)
print(pop)
print(pop.to_frame().head())

result = DifferenceInMeans().fit(pop.y1, pop.y0)
print(result.summary())

# Same exercise, via the packaged version
print(ground_truth(SimulationConfig(seed=1, population_size=N)).summary())
