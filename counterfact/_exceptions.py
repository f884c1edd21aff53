class CounterfactError(Exception):
    """Base class for every error raised by counterfact."""
    pass


class GraphError(CounterfactError):
    """Raised when the DAG is structurally invalid."""
    pass


class SampleError(CounterfactError, ValueError):
    """
    Raised for invalid sampling input: an empty sample, a non-positive
    population size, or group sizes that do not fit in the population.
    """
    pass


class EstimationError(CounterfactError, ValueError):
    """Raised when an estimator cannot produce a meaningful estimate from its input."""
    pass


class SingularDesignError(EstimationError):
    """
    Raised when a regression design matrix is rank deficient.

    The usual cause is a regressor with zero variance (collinear with the
    intercept) or two regressors that are exact linear combinations of each
    other. The treatment coefficient is not identified in that case, so no
    estimate is returned.
    """
    pass
