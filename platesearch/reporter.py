"""Rendering of masked lookup results (text, CSV, HTML) and roster statistics."""

import csv
import logging
from collections import Counter
from pathlib import Path
from typing import Iterable, NamedTuple

from jinja2 import Environment, FileSystemLoader

from platesearch import MaskedView, MemberRecord
from platesearch.engine import mask_personal_info

log = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / 'templates'

CONTACT_HINT = 'Please contact the owner directly or connect with Trustee OR Secretary.'

CSV_COLUMNS = [
    'Query',
    'Plate_Number',
    'Owner',
    'Manufacturer',
    'Car_Type',
    'Member_Status',
    'Match_Type',
    'Confidence',
]


class LookupRow(NamedTuple):
    """One answered query of a batch lookup."""

    query: str
    view: MaskedView | None
    match_type: str = ''
    confidence: int = 0


def format_result(
    view: MaskedView,
    confidence: int | None = None,
    match_type: str | None = None,
) -> str:
    """Format a masked record as a plain-text result card."""
    lines = [
        f"Plate:   {view.plate_number}",
        f"Owner:   {view.display_name}",
        f"Vehicle: {view.manufacturer} {view.car_type}".rstrip(),
        f"Status:  {view.member_status}",
    ]
    if confidence is not None:
        suffix = f" ({match_type})" if match_type else ''
        lines.append(f"Match:   {confidence}%{suffix}")
    lines.append('')
    lines.append(CONTACT_HINT)
    return '\n'.join(lines)


def format_listing(view: MaskedView) -> str:
    """Format a masked record as a single listing line."""
    return f"{view.plate_number} - {view.display_name} ({view.manufacturer} {view.car_type})"


def format_not_found(query: str) -> str:
    return f"No vehicle found for '{query}'. Please check the plate number and try again."


def _row_to_dict(row: LookupRow) -> dict:
    """Convert a LookupRow to a flat dict for CSV/HTML output."""
    view = row.view
    return {
        'Query': row.query,
        'Plate_Number': view.plate_number if view else '',
        'Owner': view.display_name if view else '',
        'Manufacturer': view.manufacturer if view else '',
        'Car_Type': view.car_type if view else '',
        'Member_Status': view.member_status if view else '',
        'Match_Type': row.match_type if view else 'none',
        'Confidence': str(row.confidence) if view else '',
    }


def write_csv_report(rows: list[LookupRow], output_path: Path) -> None:
    """Write batch lookup results as a CSV report.

    Uses UTF-8 with BOM (utf-8-sig) and semicolon delimiter for
    compatibility with Excel.

    Args:
        rows: Answered queries.
        output_path: Path for the output CSV file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='', encoding='utf-8-sig') as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS, delimiter=';')
        writer.writeheader()
        for row in rows:
            writer.writerow(_row_to_dict(row))

    log.info("CSV-Report geschrieben: %s (%d Zeilen)", output_path, len(rows))


def write_html_report(
    rows: list[LookupRow],
    output_path: Path,
    title: str = '',
) -> None:
    """Write batch lookup results as an HTML report using Jinja2.

    Args:
        rows: Answered queries.
        output_path: Path for the output HTML file.
        title: Report title.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=True,
    )
    template = env.get_template('report.html')

    found = sum(1 for r in rows if r.view is not None)
    html = template.render(
        title=title,
        rows=[_row_to_dict(r) for r in rows],
        columns=CSV_COLUMNS,
        stats={'total': len(rows), 'found': found, 'not_found': len(rows) - found},
    )

    output_path.write_text(html, encoding='utf-8')
    log.info("HTML-Report geschrieben: %s", output_path)


def compute_stats(records: Iterable[MemberRecord]) -> dict:
    """Compute summary statistics of a roster."""
    records = list(records)
    active = sum(1 for r in records if r.is_active_member)
    manufacturers = Counter(r.manufacturer for r in records if r.manufacturer)
    return {
        'total': len(records),
        'active': active,
        'inactive': len(records) - active,
        'manufacturers': dict(sorted(manufacturers.items())),
    }


def print_stats(records: Iterable[MemberRecord]) -> None:
    """Print roster statistics to stdout."""
    stats = compute_stats(records)

    print("\n=== Fahrzeug-Datenbank ===")
    print(f"Fahrzeuge gesamt:          {stats['total']:>5}")
    print(f"Aktive Mitglieder:         {stats['active']:>5}")
    print(f"Nicht-Mitglieder:          {stats['inactive']:>5}")
    if stats['manufacturers']:
        print("---")
        for name, count in stats['manufacturers'].items():
            print(f"  - {name:<23} {count:>5}")
    print()


def build_prompt_context(records: Iterable[MemberRecord]) -> str:
    """Summarize the roster for a text-completion prompt.

    Every record passes through the masking step first, so no full
    last name ends up in the prompt.
    """
    records = list(records)
    stats = compute_stats(records)
    lines = []
    for record in records:
        view = mask_personal_info(record)
        lines.append(
            f"{view.plate_number}: {view.display_name}, "
            f"{view.manufacturer} {view.car_type} - {view.member_status}"
        )
    header = (
        f"Vehicle Database ({stats['total']} vehicles, "
        f"{stats['active']} active members):"
    )
    return header + '\n\n' + '\n'.join(lines)
