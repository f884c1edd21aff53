from .dag import DAG
from .decomposition import SDODecomposition, decompose
from .estimators.difference import DifferenceInMeans, DifferenceResult
from .estimators.regression import DesignMatrix, LeastSquares, RegressionResult
from .population import Population, PopulationBuilder
from .refutations import Assumption, RefutationCheck, RefutationReport
from .sampling import Partition, partition
from .stats import clamp, standard_error
from ._exceptions import CounterfactError, EstimationError, GraphError, SampleError, SingularDesignError

__all__ = [
    "DAG",
    "SDODecomposition", "decompose",
    "DifferenceInMeans", "DifferenceResult",
    "DesignMatrix", "LeastSquares", "RegressionResult",
    "Population", "PopulationBuilder",
    "Assumption", "RefutationCheck", "RefutationReport",
    "Partition", "partition",
    "clamp", "standard_error",
    "CounterfactError", "EstimationError", "GraphError", "SampleError", "SingularDesignError",
]
