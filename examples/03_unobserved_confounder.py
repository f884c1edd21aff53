"""
What happens when a confounder is not measured.

DAG:
    C → X, C → Y, U → X, U → Y, X → Y

C is observed, U is not. Adjusting for C removes part of the bias but not
all of it. The "oracle" regression, which is also handed U, shows what
could be recovered if U had been measured.

The true ATE is about 5.
"""

from counterfact.plotting import render_dag
from counterfact.simulations import SimulationConfig, causal_graph, unobserved_confounder

dag = causal_graph("unobserved")
print(dag)
print()
render_dag(dag, "figures/dag_unobserved.png", layout="circular", title="Unobserved confounder")

result = unobserved_confounder(SimulationConfig(seed=0))
print(result.summary())
print(result.adjusted.summary())

report = result.oracle.refute()
print(report.summary())
