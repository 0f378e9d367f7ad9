#!/usr/bin/env python3
"""
Upload local files to WebStorage from the command line.

Reads credentials from WEBSTORAGE_* environment variables (or .env) and
uploads every path given, printing one line per file with its object key.

Usage:
    python scripts/upload_files.py photo.jpg report.pdf
    python scripts/upload_files.py --sequential *.png
    python scripts/upload_files.py --mock --delete notes.txt

Requires:
    - WEBSTORAGE_API_KEY (unless --mock)
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from webstorage import BatchOptions, create_webstorage_client
from webstorage.config import get_settings
from webstorage.log import configure_logging


async def upload(paths: list[str], sequential: bool, max_concurrent: int, mock: bool, delete: bool) -> bool:
    client = create_webstorage_client(mock_mode=mock or None)

    def show_progress(name: str, percent: int) -> None:
        print(f"  {name}: {percent}%", end="\r")

    results = await client.upload_multiple_files(
        paths,
        BatchOptions(
            concurrent=not sequential,
            max_concurrent=max_concurrent,
            on_progress=show_progress,
        ),
    )

    ok = True
    for result in results:
        if result.success:
            key = result.data["key"]
            print(f"[OK] {result.file_name} -> {key}")
            if delete:
                deleted = await client.delete_file(key)
                print(f"     deleted: {deleted.success} {deleted.message or ''}".rstrip())
        else:
            ok = False
            print(f"[ERR] {result.file_name}: {result.message}")

    print("\n=== Upload Complete ===")
    print(f"Uploaded: {sum(1 for r in results if r.success)}")
    print(f"Failed: {sum(1 for r in results if not r.success)}")
    return ok


def main():
    import argparse

    settings = get_settings()

    parser = argparse.ArgumentParser(description='Upload files to WebStorage')
    parser.add_argument('paths', nargs='+', help='Files to upload')
    parser.add_argument('--sequential', action='store_true', help='Upload one file at a time')
    parser.add_argument('--max-concurrent', type=int, default=settings.max_concurrent,
                        help='Files per concurrent chunk')
    parser.add_argument('--mock', action='store_true', help='Use the in-memory mock service')
    parser.add_argument('--delete', action='store_true', help='Delete each file again after upload')
    args = parser.parse_args()

    configure_logging(settings.log_level)

    try:
        success = asyncio.run(upload(
            args.paths,
            sequential=args.sequential,
            max_concurrent=args.max_concurrent,
            mock=args.mock,
            delete=args.delete,
        ))
    except ValueError as e:
        print(f"ERROR: {e}")
        sys.exit(2)

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
