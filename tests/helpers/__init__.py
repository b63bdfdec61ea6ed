"""Helper package for shared test fixtures and constants.

This module re-exports constants from ``tests.helpers.shared`` so callers can
import them as ``from tests.helpers import TOKYO_OSAKA_RECORDS``. The
``__all__`` makes it clear these names are part of the public package API.
"""
from .shared import MONTHLY_CAP_RATE_HISTORY, SAMPLE_BUILDING_IDS, TOKYO_OSAKA_RECORDS

__all__ = [
    "MONTHLY_CAP_RATE_HISTORY",
    "SAMPLE_BUILDING_IDS",
    "TOKYO_OSAKA_RECORDS",
]
