from .features import string_similarity, name_similarity, dob_agreement
from .resolver import find_best_matches

__all__ = ["string_similarity", "name_similarity", "dob_agreement", "find_best_matches"]
