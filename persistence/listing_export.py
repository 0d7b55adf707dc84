"""
Export writers for scraped listings.

Each run writes one new file whose name is derived from a UTC timestamp,
so concurrent runs sharing an output directory don't overwrite each other.
"""

from typing import Protocol, Sequence, Dict, Type
from pathlib import Path
from datetime import datetime, timezone
import csv
import json

from listing_models import ListingRecord, EXPORT_COLUMNS, NOT_AVAILABLE

FILE_PREFIX = "clutch_data"


class ListingWriter(Protocol):
    """
    Abstract interface for export writers.
    """

    def write(self, records: Sequence[ListingRecord]) -> Path:
        """Write all records to a new file and return its path."""
        ...


def timestamped_filename(extension: str, prefix: str = FILE_PREFIX) -> str:
    """Build a filename like clutch_data_2024-05-01T10-20-30-123456Z.csv."""
    stamp = datetime.now(timezone.utc).strftime('%Y-%m-%dT%H-%M-%S-%fZ')
    return f"{prefix}_{stamp}.{extension}"


class CsvListingWriter:
    """
    CSV implementation of ListingWriter.

    Writes the fixed nine-column header, one row per record, with missing
    fields written as the "N/A" sentinel.
    """

    extension = "csv"

    def __init__(self, output_dir: str = "downloads", sentinel: str = NOT_AVAILABLE):
        self.output_dir = Path(output_dir)
        self.sentinel = sentinel

    def write(self, records: Sequence[ListingRecord]) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        file_path = self.output_dir / timestamped_filename(self.extension)

        with open(file_path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=[title for _, title in EXPORT_COLUMNS])
            writer.writeheader()
            for record in records:
                writer.writerow(record.to_row(self.sentinel))

        return file_path


class JsonlListingWriter:
    """
    JSON Lines implementation of ListingWriter.

    One JSON object per record, keyed by attribute name.
    """

    extension = "jsonl"

    def __init__(self, output_dir: str = "downloads", sentinel: str = NOT_AVAILABLE):
        self.output_dir = Path(output_dir)
        self.sentinel = sentinel

    def write(self, records: Sequence[ListingRecord]) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        file_path = self.output_dir / timestamped_filename(self.extension)

        with open(file_path, 'w', encoding='utf-8') as f:
            for record in records:
                f.write(json.dumps(record.to_dict(self.sentinel), ensure_ascii=False) + '\n')

        return file_path


WRITERS: Dict[str, Type] = {
    'csv': CsvListingWriter,
    'jsonl': JsonlListingWriter,
}


def get_writer(export_format: str, output_dir: str) -> ListingWriter:
    """
    Create a writer for the given format.

    Raises:
        ValueError: If the format is unknown
    """
    writer_cls = WRITERS.get(export_format)
    if writer_cls is None:
        raise ValueError(f"Unknown export format: {export_format}")
    return writer_cls(output_dir)
