from __future__ import annotations

import argparse
import logging
import os
import sys

from ._exceptions import CounterfactError
from .plotting import render_dag
from .simulations import CAUSAL_GRAPHS, SimulationConfig, causal_graph, run_all

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="counterfact",
        description="Run the potential-outcomes exercises and draw their causal graphs.",
    )
    p.add_argument("--seed", type=int, default=1, help="random seed (default: 1)")
    p.add_argument("--population", type=int, default=10_000, help="population size N (default: 10000)")
    p.add_argument("--sample", type=int, default=1_000, help="sample size n (default: 1000)")
    p.add_argument("--output", type=str, default="figures", help="directory for DAG images (default: figures)")
    p.add_argument("--no-figures", action="store_true", help="skip rendering the DAGs")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = SimulationConfig(
            seed=args.seed,
            population_size=args.population,
            sample_size=args.sample,
        )
        for result in run_all(config).values():
            print(result.summary())

        if not args.no_figures:
            for name in CAUSAL_GRAPHS:
                path = render_dag(
                    causal_graph(name),
                    os.path.join(args.output, f"dag_{name}.png"),
                    title=name.capitalize(),
                )
                print(f"Wrote {path}")
    except CounterfactError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
