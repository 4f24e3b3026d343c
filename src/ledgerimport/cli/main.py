#!/usr/bin/env python3
"""
ledgerimport CLI - import bank/card statement exports.

Usage:
    ledgerimport parse statement.xlsx
    ledgerimport parse card.pdf -p 123456 --format json
    ledgerimport parse *.xls --passwords passwords.json --no-prompt
    ledgerimport summary jan.xlsx feb.xlsx --month 2024-02
"""

import argparse
import asyncio
import csv
import getpass
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ledgerimport.core.config import ImportConfig
from ledgerimport.core.exceptions import LedgerImportError, PasswordPromptCancelledError
from ledgerimport.core.passwords import PasswordStore
from ledgerimport.parsers.importer import StatementImporter, source_key_for_path
from ledgerimport.parsers.models import TransactionRecord
from ledgerimport.services.ledger import merge_sources, monthly_totals, net_balance, summarize_by_day
from ledgerimport.services.password_retry import PasswordCache, PasswordProvider, import_statement

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ["table", "json", "csv"]
CSV_FIELDS = ["transaction_time", "transaction_type", "amount", "category", "description"]


def setup_logging(verbose: bool = False, debug: bool = False):
    """Configure logging."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def password_prompt(display_name: str, is_retry: bool) -> Optional[str]:
    """Prompt for a statement password."""
    if is_retry:
        print(f"\nIncorrect password for: {display_name}")
    else:
        print(f"\nPassword required for: {display_name}")
    try:
        pwd = getpass.getpass("Enter password (empty to skip): ").strip()
    except (EOFError, KeyboardInterrupt):
        return None
    return pwd if pwd else None


def make_password_provider() -> PasswordProvider:
    """Async provider running getpass in a worker thread, one prompt at a time."""
    lock = asyncio.Lock()

    async def provider(display_name: str, is_retry: bool) -> Optional[str]:
        async with lock:
            return await asyncio.to_thread(password_prompt, display_name, is_retry)

    return provider


async def load_files(
    files: List[Path],
    importer: StatementImporter,
    password: Optional[str],
    store: PasswordStore,
    provider: Optional[PasswordProvider],
) -> List[Tuple[Path, object]]:
    """Import all files concurrently. Each result is a record list or an exception."""
    cache = PasswordCache()
    tasks = [
        import_statement(
            path,
            provider,
            password=password or store.get_password(path.name),
            importer=importer,
            cache=cache,
        )
        for path in files
    ]
    results = await asyncio.gather(*tasks, return_exceptions=True)
    return list(zip(files, results))


def collect(results: List[Tuple[Path, object]]) -> Tuple[Dict[str, List[TransactionRecord]], int]:
    """Split results into records per source and a failure count, reporting failures."""
    loaded: Dict[str, List[TransactionRecord]] = {}
    failures = 0
    for path, result in results:
        if isinstance(result, PasswordPromptCancelledError):
            print(f"Skipped {path.name}: {result.message}", file=sys.stderr)
        elif isinstance(result, LedgerImportError):
            print(f"Failed {path.name}: {result.message}", file=sys.stderr)
            failures += 1
        elif isinstance(result, Exception):
            print(f"Failed {path.name}: {result}", file=sys.stderr)
            failures += 1
        else:
            logger.info(f"{path.name}: {len(result)} transactions")
            loaded[source_key_for_path(path)] = result
    return loaded, failures


def format_amount(amount) -> str:
    return f"{amount:,}"


def print_table(records: List[TransactionRecord]):
    print(f"{'일시':<20} {'구분':<4} {'금액':>14}  {'거래구분':<12} 내용")
    for record in records:
        print(
            f"{record.transaction_time:%Y-%m-%d %H:%M:%S} "
            f"{record.transaction_type:<4} "
            f"{format_amount(record.amount):>14}  "
            f"{record.category:<12} {record.description}"
        )
    print(f"\nTotal: {len(records)} transactions")


def write_records(records: List[TransactionRecord], fmt: str, out=None):
    out = out or sys.stdout
    if fmt == "json":
        json.dump([record.to_dict() for record in records], out, ensure_ascii=False, indent=2)
        out.write("\n")
    elif fmt == "csv":
        writer = csv.DictWriter(out, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for record in records:
            writer.writerow(record.to_dict())
    else:
        print_table(records)


def parse_month(value: str) -> Tuple[int, int]:
    """argparse type for YYYY-MM."""
    try:
        year, month = (int(part) for part in value.split("-", 1))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid month (expected YYYY-MM): {value}")
    if not 1 <= month <= 12:
        raise argparse.ArgumentTypeError(f"invalid month (expected YYYY-MM): {value}")
    return year, month


# ============================================================================
# Command Handlers
# ============================================================================

def cmd_parse(args, records: List[TransactionRecord]) -> None:
    write_records(records, args.format)


def cmd_summary(args, records: List[TransactionRecord]) -> None:
    print(f"{'날짜':<10} {'입금':>14} {'출금':>14} {'합계':>14}")
    for day, summary in summarize_by_day(records).items():
        print(
            f"{day:%Y-%m-%d} {format_amount(summary.income):>14} "
            f"{format_amount(summary.expense):>14} {format_amount(summary.net):>14}"
        )

    if args.month:
        year, month = args.month
        income, expense = monthly_totals(records, year, month)
        print(f"\n{year:04d}-{month:02d}:")
        print(f"  Income:  {format_amount(income)}")
        print(f"  Expense: {format_amount(expense)}")

    print(f"\nNet balance: {format_amount(net_balance(records))}")


# ============================================================================
# Main Entry Point
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledgerimport",
        description="Import bank/card statement exports (xlsx, xls, pdf)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ledgerimport parse statement.xlsx
  ledgerimport parse card.pdf -p 123456 --format json
  ledgerimport summary jan.xlsx feb.xlsx --month 2024-02
        """
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("files", nargs="+", type=Path, help="Statement files")
    common.add_argument("--password", "-p", help="Password for encrypted files")
    common.add_argument("--passwords", type=Path, help="passwords.json with known passwords")
    common.add_argument("--config", type=Path, help="JSON file overriding header synonyms etc.")
    common.add_argument("--no-prompt", action="store_true", help="Skip password prompts")
    common.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    common.add_argument("--debug", action="store_true", help="Debug output")

    subparsers = parser.add_subparsers(dest="command", help="Command")

    parse_parser = subparsers.add_parser("parse", parents=[common], help="Print imported transactions")
    parse_parser.add_argument("--format", "-f", choices=OUTPUT_FORMATS, default="table",
                              help="Output format (default: table)")

    summary_parser = subparsers.add_parser("summary", parents=[common], help="Daily and monthly totals")
    summary_parser.add_argument("--month", "-m", type=parse_month, help="Month to total (YYYY-MM)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose, args.debug)

    config = ImportConfig.load(args.config)
    importer = StatementImporter(config)
    store = PasswordStore(args.passwords)
    provider = None if args.no_prompt else make_password_provider()

    try:
        results = asyncio.run(load_files(args.files, importer, args.password, store, provider))
    except KeyboardInterrupt:
        print("\nOperation cancelled")
        return 130

    loaded, failures = collect(results)
    records = merge_sources(loaded)

    if args.command == "parse":
        cmd_parse(args, records)
    elif args.command == "summary":
        cmd_summary(args, records)

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
