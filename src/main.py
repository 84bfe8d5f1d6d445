import csv
import logging
import os
import sys
from typing import Iterable, List, Optional, TextIO

from engine import TransactionEngine
from models import AccountSnapshot

OUTPUT_HEADER = ["client", "available", "held", "total", "locked"]
LOG_LEVEL_ENV = "PAYMENTS_LOG_LEVEL"


def configure_logging() -> None:
    level = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def write_accounts(snapshots: Iterable[AccountSnapshot], out: TextIO) -> None:
    """Write account snapshots as CSV, ordered by client id."""
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    for snapshot in sorted(snapshots, key=lambda s: s.client):
        writer.writerow(snapshot.as_row())


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    configure_logging()

    filepath = args[0]
    engine = TransactionEngine()
    try:
        snapshots = engine.process_file(filepath)
    except FileNotFoundError:
        print(f"Input file not found: {filepath}", file=sys.stderr)
        return 1

    write_accounts(snapshots, sys.stdout)

    # Print final processing report to stderr
    print(engine.stats, file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
