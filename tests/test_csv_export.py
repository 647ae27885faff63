"""Tests for CSV export."""

import csv
import io
from datetime import datetime, timezone

from protein_dashboard.schemas.protein import ProteinRecord
from protein_dashboard.services.csv_export import export_filename, to_csv


def parse(text):
    return list(csv.reader(io.StringIO(text, newline="")))


def test_comma_and_quote_survive_a_round_trip() -> None:
    record = ProteinRecord(id=500, accession="Q99999", name='Kinase, "alpha" subunit', organism="Homo sapiens")

    rows = parse(to_csv([record]))

    assert rows[0] == ["ID", "Accession", "Name", "Organism", "Domain", "Length", "Sequence"]
    assert rows[1][2] == 'Kinase, "alpha" subunit'


def test_embedded_quotes_are_doubled() -> None:
    text = to_csv([{"id": 1, "name": 'say "hi"'}])

    assert '"say ""hi"""' in text


def test_newlines_are_quoted() -> None:
    rows = parse(to_csv([{"id": 1, "name": "line one\nline two"}]))

    assert rows[1][2] == "line one\nline two"


def test_missing_values_are_empty() -> None:
    rows = parse(to_csv([{"id": 7, "length": 0}]))

    assert rows[1] == ["7", "", "", "", "", "0", ""]


def test_no_records_gives_empty_string() -> None:
    assert to_csv([]) == ""


def test_filename_is_timestamped() -> None:
    now = datetime(2026, 10, 19, 8, 5, 3, 120000, tzinfo=timezone.utc)

    assert export_filename(now=now) == "protein-data-export-2026-10-19T08-05-03.csv"
    assert export_filename("saved-proteins-123456", now) == "saved-proteins-123456-2026-10-19T08-05-03.csv"
