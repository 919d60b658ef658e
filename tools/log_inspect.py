#!/usr/bin/env python3
"""Log file inspection tool for debugging and learning.

Usage:
    python tools/log_inspect.py --log ./tmp/tmpdb.db --summary
    python tools/log_inspect.py --log ./tmp/tmpdb.db --records
    python tools/log_inspect.py --log ./tmp/tmpdb.db --key hello
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from exceptions import TruncatedInputError
from models import HEADER_SIZE, Record
from storage import iter_records


def load_records(log_path: Path) -> tuple[list[tuple[int, Record]], TruncatedInputError | None]:
    """Read every complete record, keeping the truncation error if the tail is partial."""
    records: list[tuple[int, Record]] = []
    try:
        for offset, record in iter_records(log_path):
            records.append((offset, record))
    except TruncatedInputError as e:
        return records, e
    return records, None


def print_summary(log_path: Path, records: list[tuple[int, Record]]) -> None:
    """Print log file summary."""
    print("=" * 50)
    print("LOG SUMMARY")
    print("=" * 50)
    print()

    latest: dict[str, int] = {}
    for offset, record in records:
        latest[record.key] = offset

    file_size = log_path.stat().st_size
    live_bytes = sum(record.size for offset, record in records if latest[record.key] == offset)

    print("=== File Statistics ===")
    print(f"  File Size: {file_size} bytes")
    print(f"  Records: {len(records)}")
    print(f"  Live Keys: {len(latest)}")
    print(f"  Live Bytes: {live_bytes}")
    print(f"  Dead Bytes: {file_size - live_bytes}")
    if records:
        print(f"  First Timestamp: {records[0][1].timestamp}")
        print(f"  Last Timestamp: {records[-1][1].timestamp}")
    print()


def print_record(offset: int, record: Record) -> None:
    header = record.header
    value_offset = offset + HEADER_SIZE + header.key_size
    print(
        f"  @{offset:<10} ts={header.timestamp} key_size={header.key_size} "
        f"value_size={header.value_size} value_offset={value_offset}"
    )
    print(f"    key={_text_repr(record.key)} value={_text_repr(record.value)}")


def print_records(records: list[tuple[int, Record]]) -> None:
    """Print every record in write order."""
    print("=== Records ===")
    for offset, record in records[:100]:
        print_record(offset, record)
    if len(records) > 100:
        print(f"  ... and {len(records) - 100} more records")
    print()


def print_key(records: list[tuple[int, Record]], key: str) -> None:
    """Print all versions of a key, newest last."""
    print(f"=== Key {_text_repr(key)} ===")
    versions = [(offset, record) for offset, record in records if record.key == key]
    if not versions:
        print("  (not found)")
    for offset, record in versions:
        print_record(offset, record)
    print()


def _text_repr(text: str, max_len: int = 20) -> str:
    """Format a key or value for display."""
    if len(text) > max_len:
        return repr(text[:max_len] + "...")
    return repr(text)


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect tmpdb log files")
    parser.add_argument("--log", required=True, help="Path to log file")
    parser.add_argument("--summary", action="store_true", help="Show log summary")
    parser.add_argument("--records", action="store_true", help="List records")
    parser.add_argument("--key", help="Show every version of one key")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    log_path = Path(args.log)
    if not log_path.exists():
        print(f"Error: Log file not found: {log_path}", file=sys.stderr)
        sys.exit(1)

    records, truncated = load_records(log_path)

    if args.records:
        print_records(records)
    elif args.key is not None:
        print_key(records, args.key)
    else:
        print_summary(log_path, records)

    if truncated is not None:
        print(f"Warning: log ends with a partial record ({truncated})")


if __name__ == "__main__":
    main()
