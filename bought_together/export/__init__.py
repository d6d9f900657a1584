"""
Result Export Module
"""
from .csv_export import bundles_frame, bundles_to_csv, pairs_frame, pairs_to_csv

__all__ = [
    "bundles_frame",
    "bundles_to_csv",
    "pairs_frame",
    "pairs_to_csv",
]
