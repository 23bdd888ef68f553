#!/usr/bin/env python3
"""
Business-tax filing from the command line: import an MOF e-invoice workbook
as DRAFT invoices, or export a bi-monthly media file.

Usage:
    python3 scripts/tax_filing.py <command> [options]

Examples:
    # Show the detected columns and sample rows of a workbook
    python3 scripts/tax_filing.py probe --file purchases.xlsx

    # Parse only, report row errors, write nothing
    python3 scripts/tax_filing.py import --file purchases.xlsx --company-id <uuid> --dry-run

    # Import, accepting the valid rows even when some rows have errors
    python3 scripts/tax_filing.py import --file sales.xlsx --company-id <uuid> --partial

    # Export the Nov-Dec 2024 media file
    python3 scripts/tax_filing.py export --company-id <uuid> --tax-id 12345678 \\
        --year 2024 --bi-month 6 --out 12345678.TXT

    # Print the Form 401 summary for the same period
    python3 scripts/tax_filing.py form401 --company-id <uuid> --tax-id 12345678 \\
        --company-name "Example Co" --year 2024 --bi-month 6

The database URL comes from --db-url, else the DATABASE_URL environment
variable, else a local SQLite file.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from uuid import UUID, uuid4

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

DB_URL = os.environ.get("DATABASE_URL", "sqlite:///ledger.db")
MAX_ERRORS_SHOWN = 20


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Import MOF e-invoice workbooks and export business-tax media files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--db-url", default=DB_URL, help=f"Database URL (default: {DB_URL!r}).")
    parser.add_argument("--verbose", action="store_true", help="Emit JSON logs to stderr.")
    sub = parser.add_subparsers(dest="command", required=True)

    probe = sub.add_parser("probe", help="Show columns and sample rows of a workbook.")
    probe.add_argument("--file", required=True, type=Path)
    probe.add_argument("--sheet", default=None, help="Sheet name (default: active sheet).")

    imp = sub.add_parser("import", help="Import a workbook as DRAFT invoices.")
    imp.add_argument("--file", required=True, type=Path)
    imp.add_argument("--company-id", required=True, type=UUID)
    imp.add_argument(
        "--actor-id",
        type=UUID,
        default=None,
        help="Actor UUID for audit (default: TAX_FILING_ACTOR_ID env or new UUID).",
    )
    imp.add_argument(
        "--mode",
        choices=("mof_purchase", "mof_sales"),
        default=None,
        help="Force the sheet layout instead of detecting it from the headers.",
    )
    imp.add_argument("--partial", action="store_true", help="Import valid rows even if some rows fail.")
    imp.add_argument("--dry-run", action="store_true", help="Parse and report only; no DB writes.")

    exp = sub.add_parser("export", help="Write the media file for a bi-monthly period.")
    _period_args(exp)
    exp.add_argument("--branch-code", default=None, help="1-digit branch code (default from config).")
    exp.add_argument("--out", required=True, type=Path, help="Output file path.")

    form = sub.add_parser("form401", help="Print the Form 401 summary for a period.")
    _period_args(form)
    form.add_argument("--company-name", required=True)
    return parser


def _period_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--company-id", required=True, type=UUID)
    parser.add_argument("--tax-id", required=True, help="8-digit company tax id.")
    parser.add_argument("--year", required=True, type=int, help="Western calendar year.")
    parser.add_argument("--bi-month", required=True, type=int, choices=range(1, 7))


def _actor_id(args: argparse.Namespace) -> UUID:
    if args.actor_id:
        return args.actor_id
    return UUID(os.environ.get("TAX_FILING_ACTOR_ID", str(uuid4())))


def _print_errors(errors) -> None:
    for error in errors[:MAX_ERRORS_SHOWN]:
        column = f" [{error.column}]" if error.column else ""
        print(f"  Row {error.row}{column}: {error.message}")
    if len(errors) > MAX_ERRORS_SHOWN:
        print(f"  ... and {len(errors) - MAX_ERRORS_SHOWN} more.")


def _probe(args: argparse.Namespace) -> int:
    from tax_filing.adapters.xlsx_adapter import XlsxSourceAdapter
    from tax_filing.domain.importer import detect_import_mode

    probe = XlsxSourceAdapter().probe(args.file, {"sheet": args.sheet})
    print(f"Sheet: {probe.sheet_name}")
    print(f"Rows: {probe.row_count}")
    print(f"Columns: {list(probe.columns)}")
    print(f"Detected layout: {detect_import_mode(probe.columns).value}")
    print("Sample:")
    for i, row in enumerate(probe.sample_rows, 1):
        print(f"  {i}: {row}")
    return 0


def _import(args: argparse.Namespace) -> int:
    from tax_filing.adapters.xlsx_adapter import XlsxSourceAdapter
    from tax_filing.domain.importer import parse_rows, validate_import_result
    from tax_filing.domain.types import ImportMode

    mode = ImportMode(args.mode) if args.mode else None

    if args.dry_run:
        sheet = XlsxSourceAdapter().read_sheet(args.file, {})
        result = parse_rows(sheet.rows, sheet.headers, mode=mode, first_row=sheet.first_data_row)
        ok, message = validate_import_result(result)
        print(f"Layout: {result.mode.value}")
        print(f"Parsed: {len(result.data)}, errors: {len(result.errors)}")
        _print_errors(result.errors)
        print(message)
        return 0 if ok else 1

    from ledger_kernel.db.engine import create_tables, init_engine_from_url
    from ledger_services import LedgerAPI

    init_engine_from_url(args.db_url)
    create_tables()
    api = LedgerAPI()
    result, summary = api.import_tax_filing_workbook(
        args.company_id, args.file, _actor_id(args), mode=mode, partial=args.partial
    )
    print(f"Layout: {result.mode.value}")
    print(f"Parsed: {len(result.data)}, errors: {len(result.errors)}")
    _print_errors(result.errors)
    if summary is None:
        print("Nothing imported (fix the errors above or pass --partial).")
        return 1
    print(f"Created: {summary.created_count}, already on file: {len(summary.skipped)}")
    for failure in summary.failed:
        print(f"  Row {failure.row} ({failure.number}): {failure.code} {failure.message}")
    return 1 if summary.failed else 0


def _export(args: argparse.Namespace) -> int:
    from ledger_kernel.db.engine import init_engine_from_url
    from ledger_services import LedgerAPI
    from tax_filing.domain.media_file import validate_media_file

    init_engine_from_url(args.db_url)
    result = LedgerAPI().export_tax_filing_file(
        args.company_id, args.tax_id, args.year, args.bi_month, args.branch_code
    )
    check = validate_media_file(result.content)
    if not check.valid:
        for error in check.errors:
            print(f"ERROR: {error}", file=sys.stderr)
        return 1
    args.out.write_bytes(result.content)
    print(f"Wrote {result.record_count} records to {args.out}")
    print(f"  Sales: {result.output_count} invoices, {result.output_amount} untaxed, {result.output_tax} tax")
    print(f"  Purchases: {result.input_count} invoices, {result.input_amount} untaxed, {result.input_tax} tax")
    return 0


def _form401(args: argparse.Namespace) -> int:
    from ledger_kernel.db.engine import init_engine_from_url
    from ledger_services import LedgerAPI

    init_engine_from_url(args.db_url)
    form = LedgerAPI().form_401(
        args.company_id, args.tax_id, args.company_name, args.year, args.bi_month
    )
    period = form.period
    print(f"{form.company_name} ({form.company_tax_id})  {period.start_date} .. {period.end_date}")
    print(f"  Filing due: {period.filing_due_date}")
    print(f"  Taxable sales:     {form.sales_taxable.count:>5}  {form.sales_taxable.untaxed_amount:>15}")
    print(f"  Zero-rated sales:  {form.sales_zero_rated.count:>5}  {form.sales_zero_rated.untaxed_amount:>15}")
    print(f"  Exempt sales:      {form.sales_exempt.count:>5}  {form.sales_exempt.untaxed_amount:>15}")
    print(f"  Output tax:        {form.output_tax:>22}")
    print(f"  Input tax:         {form.input_tax:>22}")
    label = "Refund" if form.is_refund else "Payable"
    print(f"  {label + ':':<19}{form.net_tax:>22}")
    return 0


COMMANDS = {
    "probe": _probe,
    "import": _import,
    "export": _export,
    "form401": _form401,
}


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    from ledger_kernel.exceptions import LedgerError
    from ledger_kernel.logging_config import configure_logging

    if args.verbose:
        configure_logging()

    if getattr(args, "file", None) is not None and not args.file.is_file():
        print(f"ERROR: File not found: {args.file}", file=sys.stderr)
        return 1

    try:
        return COMMANDS[args.command](args)
    except LedgerError as exc:
        print(f"ERROR: {exc.code}: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
