#!/usr/bin/env python3
"""
UniDirectory -- university member directory.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080 --reload
  python main.py import-programmes programmes.csv
  python main.py import-programmes programmes.csv --replace
  python main.py list-programmes

Environment variables (or .env):
  SECRET_KEY     Session signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL   SQLAlchemy URL. Alternatively DB_HOST / DB_USER / DB_PASSWORD / DB_NAME.
  PORT           Listening port for `serve` (default 8000).
"""

import argparse
import sys
from pathlib import Path

from core.config import get_settings
from directory.ingest import parse_programmes_csv
from directory.store import ProgrammeStore


def _load_file(path: str) -> str:
    """Read a CSV file, refusing anything that is not a regular file."""
    file_path = Path(path).resolve()
    if not file_path.is_file():
        raise SystemExit(f"  [!] '{path}' is not a readable file.")
    try:
        return file_path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise SystemExit(f"  [!] Could not read file '{path}': {e}") from e


def _serve(args: argparse.Namespace) -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "asgi:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
    )


def _import_programmes(args: argparse.Namespace) -> None:
    records = parse_programmes_csv(_load_file(args.file))
    if not records:
        print("  [!] No programme rows found. Expected a header of faculty,department,programme.")
        return
    store = ProgrammeStore(get_settings().resolved_database_url)
    try:
        if args.replace:
            removed = store.clear()
            print(f"  Removed {removed} existing row(s).")
        written = store.add_programmes(records)
        print(f"  Imported {written} programme row(s); {len(store.distinct_faculties())} faculties in total.")
    finally:
        store.close()


def _list_programmes(args: argparse.Namespace) -> None:
    store = ProgrammeStore(get_settings().resolved_database_url)
    try:
        faculties = store.distinct_faculties()
        if not faculties:
            print("  No programmes loaded. Run: python main.py import-programmes FILE")
            return
        for faculty in faculties:
            print(faculty)
            for department in store.distinct_departments(faculty):
                print(f"  {department}")
                for programme in store.distinct_programmes(faculty, department):
                    print(f"    {programme}")
    finally:
        store.close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="unidirectory",
        description="University member directory.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py import-programmes data/programmes.csv
  DATABASE_URL=sqlite:///dev.db python main.py list-programmes
        """,
    )
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the web server with uvicorn")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, default=None, help="Listening port (default: PORT setting)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(handler=_serve)

    imp = sub.add_parser("import-programmes", help="Load faculty,department,programme rows from a CSV file")
    imp.add_argument("file", metavar="PATH", help="CSV file with a faculty,department,programme header")
    imp.add_argument("--replace", action="store_true", help="Delete existing rows before importing")
    imp.set_defaults(handler=_import_programmes)

    lst = sub.add_parser("list-programmes", help="Print the faculty > department > programme tree")
    lst.set_defaults(handler=_list_programmes)

    args = parser.parse_args(argv)
    if not getattr(args, "handler", None):
        parser.print_help()
        sys.exit(1)
    args.handler(args)


if __name__ == "__main__":
    main()
