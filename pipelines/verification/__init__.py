from .aggregator import aggregate
from .field_comparator import classify, compare_fields

__all__ = ["aggregate", "classify", "compare_fields"]
