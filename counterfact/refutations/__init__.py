from ._check import Assumption, RefutationCheck, RefutationReport

__all__ = ["Assumption", "RefutationCheck", "RefutationReport"]
