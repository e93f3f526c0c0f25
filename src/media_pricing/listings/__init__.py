"""Listings subpackage - row transforms for the priced listing endpoints."""
from .transform import (
    parse_raw_price,
    load_publications,
    load_csv_listing,
    transform_publications,
    transform_television,
    transform_broadcast_television,
    transform_listicles,
)

__all__ = [
    'parse_raw_price', 'load_publications', 'load_csv_listing',
    'transform_publications', 'transform_television', 'transform_broadcast_television',
    'transform_listicles',
]
