"""
Extractors for directory listing pages.

This package contains pure, unit-testable extraction functions
for reading listing rows and pagination links from HTML.
"""

from .listing_rows import (
    extract_listing_rows,
    extract_next_page_url,
    normalize_url,
    get_selector_match_count
)

__all__ = [
    'extract_listing_rows',
    'extract_next_page_url',
    'normalize_url',
    'get_selector_match_count'
]
