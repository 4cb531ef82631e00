from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from cookbook_rag.config import load_config
from cookbook_rag.logging import configure_logging

logger = logging.getLogger(__name__)

IMPORT_USAGE = """\
Recipe PDF import tool

USAGE:
  cookbook-rag import [options] [pdf-file]

OPTIONS:
  --dry-run          Preview recipes without importing
  --import           Actually import to the database
  --limit N          Import only the first N recipes

Run --dry-run first to verify parsing quality.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cookbook-rag", description="Cookbook recipe import and retrieval")
    commands = parser.add_subparsers(dest="command", required=True)

    import_cmd = commands.add_parser("import", help="Parse recipes from a cookbook PDF or text file")
    import_cmd.add_argument("path", nargs="?", default="data.pdf", help="Cookbook file (default: data.pdf)")
    mode = import_cmd.add_mutually_exclusive_group()
    mode.add_argument("--dry-run", action="store_true", help="Preview recipes without importing")
    mode.add_argument("--import", dest="do_import", action="store_true", help="Save recipes to the database")
    import_cmd.add_argument("--limit", type=int, help="Import only the first N recipes")
    import_cmd.add_argument("--no-index", action="store_true", help="Skip the vector index")

    context_cmd = commands.add_parser("context", help="Build generation context for a dish")
    context_cmd.add_argument("dish", help="Dish name, e.g. 'Phở bò'")
    context_cmd.add_argument("--hint", action="append", default=[], help="Category tag or descriptive hint")
    context_cmd.add_argument("--json", action="store_true", help="Print the full result as JSON")

    return parser


def _run_import(args: argparse.Namespace) -> int:
    from services.importer import RecipeImporter

    if not args.dry_run and not args.do_import:
        print(IMPORT_USAGE)
        return 0
    if args.limit is not None and args.limit < 1:
        print("--limit must be a positive integer", file=sys.stderr)
        return 2

    importer = RecipeImporter(use_index=not args.no_index)
    try:
        summary = importer.import_file(args.path, dry_run=args.dry_run, limit=args.limit)
    except FileNotFoundError as exc:
        logger.error("Import failed: %s", exc)
        return 1

    if not args.dry_run:
        print(
            f"Imported: {summary.imported}  Skipped (duplicates): {summary.skipped}  "
            f"Errors: {summary.errors}  Total recipes in file: {summary.total}"
        )
    return 0


def _run_context(args: argparse.Namespace) -> int:
    from services.context import RecipeContextService

    result = RecipeContextService().retrieve_context(args.dish, args.hint)
    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    elif result.context:
        print(result.context)
    else:
        print(f"No similar recipes found (queries: {', '.join(result.queries_used) or 'none'})")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(load_config())

    if args.command == "import":
        return _run_import(args)
    return _run_context(args)


if __name__ == "__main__":
    sys.exit(main())
