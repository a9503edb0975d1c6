"""plate-search – CLI-Tool zur Kennzeichen-Suche in der Mitglieder-Datenbank."""

import argparse
import logging
import sys
from pathlib import Path

from platesearch.engine import PlateSearchEngine, mask_personal_info
from platesearch.reader import load_roster
from platesearch.reporter import (
    LookupRow,
    build_prompt_context,
    format_listing,
    format_not_found,
    format_result,
    print_stats,
    write_csv_report,
    write_html_report,
)
from platesearch.scoring import DEFAULT_MIN_CONFIDENCE


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        description='Kennzeichen-Suche in der Fahrzeug-Datenbank der Mitglieder.',
        prog='lookup.py',
    )
    parser.add_argument(
        '--roster', required=True, type=Path,
        help='Pfad zur Mitglieder-Datei (CSV oder JSON)',
    )
    parser.add_argument(
        '--plate-column',
        help="Name der Kennzeichen-Spalte (Standard: 'Plate Number' oder 'Car Number')",
    )
    parser.add_argument(
        '--validate', action='store_true',
        help='Kennzeichen-Format beim Einlesen pruefen',
    )
    parser.add_argument(
        '--query', action='append', default=[],
        help='Gesuchtes Kennzeichen (mehrfach moeglich)',
    )
    parser.add_argument(
        '--queries-file', type=Path,
        help='Datei mit einem Kennzeichen pro Zeile (Batch-Modus)',
    )
    parser.add_argument(
        '--min-confidence', type=int, default=DEFAULT_MIN_CONFIDENCE,
        help=f'Mindest-Konfidenz fuer Treffer (Standard: {DEFAULT_MIN_CONFIDENCE})',
    )
    parser.add_argument(
        '--output', type=Path,
        help='Pfad fuer den Report (CSV)',
    )
    parser.add_argument(
        '--html', action='store_true',
        help='Zusaetzlich einen HTML-Report erzeugen',
    )
    parser.add_argument(
        '--stats', action='store_true',
        help='Statistik der Datenbank ausgeben',
    )
    parser.add_argument(
        '--suggest', metavar='PARTIAL',
        help='Vorschlaege fuer ein unvollstaendiges Kennzeichen ausgeben',
    )
    parser.add_argument(
        '--context', action='store_true',
        help='Maskierten Datenbank-Kontext fuer Sprachmodelle ausgeben',
    )
    parser.add_argument(
        '--manufacturer', metavar='NAME',
        help='Alle Fahrzeuge eines Herstellers auflisten',
    )
    parser.add_argument(
        '--active', action='store_true',
        help='Alle aktiven Mitglieder auflisten',
    )
    return parser


def read_queries(path: Path) -> list[str]:
    """Read one query per line, ignoring blank lines."""
    with open(path, 'r', encoding='utf-8-sig') as f:
        return [line.strip() for line in f if line.strip()]


def run_queries(engine: PlateSearchEngine, queries: list[str]) -> list[LookupRow]:
    """Answer each query, applying the engine's confidence cutoff."""
    rows: list[LookupRow] = []
    for query in queries:
        result = engine.search(query)
        if engine.is_acceptable(result):
            rows.append(LookupRow(
                query=query,
                view=mask_personal_info(result.record),
                match_type=result.match_type,
                confidence=result.confidence,
            ))
        else:
            rows.append(LookupRow(query=query, view=None))
    return rows


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(levelname)s: %(message)s',
    )

    parser = build_parser()
    args = parser.parse_args(argv)

    actions = (
        args.query, args.queries_file, args.stats, args.suggest,
        args.context, args.manufacturer, args.active,
    )
    if not any(actions):
        parser.error(
            'Mindestens eine der Optionen --query, --queries-file, --stats, '
            '--suggest, --context, --manufacturer oder --active muss angegeben werden.'
        )

    if args.output and not (args.query or args.queries_file):
        parser.error('--output erfordert --query oder --queries-file.')

    if args.html and not args.output:
        parser.error('--output ist erforderlich bei Verwendung von --html.')

    if not 0 <= args.min_confidence <= 100:
        parser.error('--min-confidence muss zwischen 0 und 100 liegen.')

    try:
        records = load_roster(
            args.roster, plate_column=args.plate_column, validate_plates=args.validate,
        )
    except (OSError, ValueError) as exc:
        logging.error("Datenbank konnte nicht geladen werden: %s", exc)
        return 1

    engine = PlateSearchEngine(records, min_acceptable_confidence=args.min_confidence)

    if args.stats:
        print_stats(engine.records)

    if args.context:
        print(build_prompt_context(engine.records))

    if args.suggest:
        suggestions = engine.suggest(args.suggest)
        if not suggestions:
            logging.info("Keine Vorschlaege fuer '%s'.", args.suggest)
        for view in suggestions:
            print(format_listing(view))

    if args.manufacturer:
        views = engine.by_manufacturer(args.manufacturer)
        print(f"{len(views)} Fahrzeug(e) von {args.manufacturer}:")
        for view in views:
            print(format_listing(view))

    if args.active:
        views = engine.active_members()
        print(f"Aktive Mitglieder ({len(views)}):")
        for view in views:
            print(format_listing(view))

    queries = list(args.query)
    if args.queries_file:
        try:
            queries.extend(read_queries(args.queries_file))
        except OSError as exc:
            logging.error("Suchdatei konnte nicht gelesen werden: %s", exc)
            return 1

    if queries:
        rows = run_queries(engine, queries)
        for row in rows:
            if row.view is None:
                print(format_not_found(row.query))
            else:
                print(format_result(row.view, row.confidence, row.match_type))
            print()

        if args.output:
            write_csv_report(rows, args.output)
            if args.html:
                write_html_report(rows, args.output.with_suffix('.html'), args.roster.stem)

    return 0


if __name__ == '__main__':
    sys.exit(main())
