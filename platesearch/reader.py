"""Roster reader for member CSV and JSON files."""

import csv
import io
import json
import logging
import re
from pathlib import Path
from typing import Iterable

from platesearch import MemberRecord

log = logging.getLogger(__name__)

# Matches any sequence of whitespace (including Unicode whitespace like U+2006)
_WHITESPACE_RE = re.compile(r'\s+')

PLATE_COLUMNS = ('Plate Number', 'Car Number')

REQUIRED_COLUMNS = {'First Name', 'Last Name', 'Member', 'Car Type', 'Car Manufacturer'}

ACTIVE_FLAGS = {'Y', 'YES', 'TRUE', '1', 'ACTIVE'}

# Accepted plate formats for validated uploads: ABC-1234 style and GJ-01-AB-1234
PLATE_FORMATS = (
    re.compile(r'^[A-Z0-9]{2,4}-[A-Z0-9]{2,4}$', re.IGNORECASE),
    re.compile(r'^GJ-\d{2}-[A-Z]{2}-\d{4}$', re.IGNORECASE),
)


def detect_encoding(path: Path) -> str:
    """Detect file encoding by checking for BOM bytes.

    Args:
        path: Path to the roster file.

    Returns:
        Encoding string suitable for open().
    """
    with open(path, 'rb') as f:
        bom = f.read(2)
    if bom == b'\xff\xfe':
        return 'utf-16-le'
    return 'utf-8-sig'


def normalize_whitespace(value: str) -> str:
    """Collapse whitespace runs into single spaces and strip the ends."""
    return _WHITESPACE_RE.sub(' ', value).strip()


def parse_member_flag(value) -> bool:
    """Interpret the Member column (Y/N or a boolean equivalent)."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return normalize_whitespace(str(value)).upper() in ACTIVE_FLAGS


def is_valid_plate(value: str) -> bool:
    """Check a stored plate against the accepted upload formats."""
    return any(pattern.match(value) for pattern in PLATE_FORMATS)


def _resolve_plate_column(columns: Iterable[str], plate_column: str | None) -> str:
    """Pick the plate column, either the requested one or the first known name."""
    columns = set(columns)
    if plate_column is not None:
        if plate_column not in columns:
            raise ValueError(f"Kennzeichen-Spalte fehlt: {plate_column}")
        return plate_column
    for candidate in PLATE_COLUMNS:
        if candidate in columns:
            return candidate
    raise ValueError(
        f"Kennzeichen-Spalte fehlt (erwartet: {' oder '.join(PLATE_COLUMNS)})"
    )


def _clean_value(value) -> str:
    if value is None:
        return ''
    return normalize_whitespace(str(value))


def _check_columns(columns: Iterable[str], source) -> None:
    missing = REQUIRED_COLUMNS - set(columns)
    if missing:
        raise ValueError(
            f"Fehlende Spalten in {source}: {', '.join(sorted(missing))}"
        )


def records_from_rows(
    rows: Iterable[dict],
    plate_column: str | None = None,
    validate_plates: bool = False,
    source: str = '<rows>',
    first_row: int = 1,
) -> list[MemberRecord]:
    """Convert raw roster rows into MemberRecord objects.

    Args:
        rows: Dicts keyed by column header.
        plate_column: Name of the plate column; detected if None.
        validate_plates: Reject plates outside the accepted formats.
        source: Name of the input, used in messages.
        first_row: Row number of the first row, used in messages.

    Returns:
        List of MemberRecord objects.

    Raises:
        ValueError: If required columns are missing or a plate is invalid.
    """
    records: list[MemberRecord] = []
    column = plate_column

    for row_num, row in enumerate(rows, start=first_row):
        # Normalize keys and values
        cleaned = {normalize_whitespace(str(k)): _clean_value(v)
                   for k, v in row.items() if k is not None}
        if row_num == first_row:
            _check_columns(cleaned, source)
            column = _resolve_plate_column(cleaned, plate_column)

        plate = cleaned.get(column, '')
        if validate_plates and plate and not is_valid_plate(plate):
            raise ValueError(
                f"Ungueltiges Kennzeichen in Zeile {row_num} von {source}: {plate}"
            )

        first_name = cleaned.get('First Name', '')
        last_name = cleaned.get('Last Name', '')
        if not first_name or not last_name:
            log.warning("Zeile %d in %s uebersprungen: Name fehlt", row_num, source)
            continue

        records.append(MemberRecord(
            first_name=first_name,
            last_name=last_name,
            plate_number=plate,
            manufacturer=cleaned.get('Car Manufacturer', ''),
            car_type=cleaned.get('Car Type', ''),
            is_active_member=parse_member_flag(cleaned.get('Member')),
        ))

    return records


def read_members(
    path: str | Path,
    plate_column: str | None = None,
    validate_plates: bool = False,
) -> list[MemberRecord]:
    """Read member records from a comma-separated CSV file.

    Handles UTF-16LE (with BOM) and UTF-8 encoded files automatically.
    Fields are trimmed and whitespace-normalized.

    Args:
        path: Path to the CSV file.
        plate_column: Name of the plate column ('Plate Number' or
            'Car Number' are detected automatically).
        validate_plates: Reject plates outside the accepted formats.

    Returns:
        List of MemberRecord objects.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If required columns are missing or a plate is invalid.
    """
    path = Path(path)
    encoding = detect_encoding(path)

    with open(path, 'r', encoding=encoding) as f:
        content = f.read()

    # Strip BOM if present
    content = content.lstrip('\ufeff')

    reader = csv.DictReader(io.StringIO(content))
    if reader.fieldnames is None:
        raise ValueError(f"Datei {path} ist leer oder hat keine Header-Zeile.")
    header = {normalize_whitespace(c) for c in reader.fieldnames}
    _check_columns(header, path)
    column = _resolve_plate_column(header, plate_column)

    records = records_from_rows(
        reader, plate_column=column, validate_plates=validate_plates,
        source=str(path), first_row=2,
    )
    log.info("%d Mitglieder gelesen aus %s", len(records), path)
    return records


def read_members_json(
    path: str | Path,
    plate_column: str | None = None,
    validate_plates: bool = False,
) -> list[MemberRecord]:
    """Read member records from a JSON file.

    Accepts either a list of row objects or an object with the rows
    under a 'data' key.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the payload has the wrong shape or columns are missing.
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8-sig') as f:
        payload = json.load(f)

    rows = payload.get('data') if isinstance(payload, dict) else payload
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        raise ValueError(f"Datei {path} enthaelt keine Liste von Mitgliedern.")

    records = records_from_rows(
        rows, plate_column=plate_column, validate_plates=validate_plates,
        source=str(path),
    )
    log.info("%d Mitglieder gelesen aus %s", len(records), path)
    return records


def load_roster(path: str | Path, **kwargs) -> list[MemberRecord]:
    """Read a roster, choosing the format by file suffix."""
    path = Path(path)
    if path.suffix.lower() == '.json':
        return read_members_json(path, **kwargs)
    return read_members(path, **kwargs)
