"""
Command-line entry point for the BoltPass vault.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from . import config
from . import diagnostics
from .backends import FileStore, MemoryStore
from .errors import VaultError
from .storage import Credential, SecureStorage

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="boltpass", description=config.APP_NAME)
    parser.add_argument("--store-dir", default=config.DEFAULT_STORE_DIR,
                        help="directory of the file-backed store (default: %(default)s)")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {config.APP_VERSION}")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="list stored credentials")

    add = sub.add_parser("add", help="add a credential")
    add.add_argument("--username", required=True)
    add.add_argument("--password", required=True)
    add.add_argument("--notes", default="")

    remove = sub.add_parser("remove", help="remove a credential by id")
    remove.add_argument("id")

    export = sub.add_parser("export", help="write the vault as plain JSON")
    export.add_argument("file", nargs="?", help="output file (default: stdout)")

    imp = sub.add_parser("import", help="replace the vault with an exported JSON file")
    imp.add_argument("file")

    sub.add_parser("clear", help="delete every stored credential")

    bench = sub.add_parser("bench", help="run storage diagnostics against a scratch in-memory store")
    bench.add_argument("--count", type=int, default=config.DIAGNOSTICS_STORAGE_COUNT)
    bench.add_argument("--stress", type=int, default=0, metavar="MAX",
                       help="also run the stress test up to MAX credentials")
    return parser


async def _bench(args: argparse.Namespace) -> int:
    scratch = SecureStorage(backend=MemoryStore())
    results = [
        await diagnostics.measure_storage_performance(scratch, args.count),
        await diagnostics.measure_batch_operations(scratch),
    ]
    if args.stress:
        results.extend(await diagnostics.run_stress_test(scratch, args.stress))
    report = {
        'system': diagnostics.get_system_info(),
        'results': [r.to_dict() for r in results],
    }
    print(json.dumps(report, indent=2))
    return 0


async def run(args: argparse.Namespace) -> int:
    """Execute one CLI command. Returns the process exit status."""
    if args.command == "bench":
        return await _bench(args)

    storage = SecureStorage(backend=FileStore(args.store_dir))
    added: Optional[Credential] = None
    try:
        async with storage:
            if args.command == "list":
                for record in storage.retrieve():
                    if not isinstance(record, dict):
                        continue
                    print(f"{record.get('id', '')}\t{record.get('username', '')}\t{record.get('created_at', '')}")

            elif args.command == "add":
                records = storage.retrieve()
                added = Credential.new(args.username, args.password, args.notes)
                records.append(added.to_dict())
                storage.store(records)

            elif args.command == "remove":
                records = storage.retrieve()
                remaining = [r for r in records if not (isinstance(r, dict) and r.get('id') == args.id)]
                if len(remaining) == len(records):
                    print(f"No credential with id {args.id}", file=sys.stderr)
                    return 1
                storage.store(remaining)

            elif args.command == "export":
                data = storage.export_snapshot()
                if args.file:
                    with open(args.file, 'w', encoding='utf-8') as f:
                        f.write(data)
                else:
                    print(data)

            elif args.command == "import":
                with open(args.file, 'r', encoding='utf-8') as f:
                    data = f.read()
                if not storage.import_snapshot(data):
                    print(f"{args.file} does not contain an exported vault", file=sys.stderr)
                    return 1

            elif args.command == "clear":
                storage.clear()
    except VaultError as e:
        logger.error(f"Failed to save vault: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if added is not None:
        print(added.id)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format=config.LOG_FORMAT)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
