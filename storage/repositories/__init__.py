from .comparisons import ComparisonRepository
from .matches import MatchRepository
from .reports import ReportBuilder

__all__ = ["ComparisonRepository", "MatchRepository", "ReportBuilder"]
