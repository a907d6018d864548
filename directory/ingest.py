"""
directory/ingest.py -- Programme reference-data parser.

Reads a CSV with a header row naming faculty, department and programme
columns (any order, extra columns ignored) and returns Programme rows ready
for ProgrammeStore.add_programmes().

Rows with any of the three values missing or blank are skipped. Duplicate
rows are kept: the table is expected to contain them and the distinct-value
queries collapse them.
"""

import csv
import io

from directory.models import HIERARCHY_FIELDS, Programme


def parse_programmes_csv(content: str) -> list[Programme]:
    """Parse faculty,department,programme rows from CSV text."""
    records: list[Programme] = []
    reader = csv.DictReader(io.StringIO(content))
    for row in reader:
        values = [(row.get(name) or "").strip() for name in HIERARCHY_FIELDS]
        if not all(values):
            continue
        faculty, department, programme = values
        records.append(Programme(faculty=faculty, department=department, programme=programme))
    return records
