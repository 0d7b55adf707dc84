"""
Persistence layer for scraped listings.

This package provides the export writers that turn a run's records
into a downloadable file.
"""

from .listing_export import (
    CsvListingWriter,
    JsonlListingWriter,
    ListingWriter,
    get_writer,
    WRITERS,
)

__all__ = ['CsvListingWriter', 'JsonlListingWriter', 'ListingWriter', 'get_writer', 'WRITERS']
