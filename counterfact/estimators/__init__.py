from .difference import DifferenceInMeans, DifferenceResult
from .regression import DesignMatrix, LeastSquares, RegressionResult

__all__ = ["DifferenceInMeans", "DifferenceResult", "DesignMatrix", "LeastSquares", "RegressionResult"]
