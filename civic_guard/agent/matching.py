"""Spoken-value resolution against a stage's option list"""
from typing import Optional, Sequence


def find_best_match(query: str, options: Sequence[str]) -> Optional[str]:
    """
    Case-insensitive exact match first, then the first option that
    contains the query. None when nothing fits.
    """
    needle = query.strip().lower()
    if not needle:
        return None
    for option in options:
        if option.lower() == needle:
            return option
    for option in options:
        if needle in option.lower():
            return option
    return None
