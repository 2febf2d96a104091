# =============================================================================
# src/cli/ingest.py -- Operator CLI for the document index
# =============================================================================
#
# Manages the vector index outside the web server: ingest files from disk,
# delete documents, inspect the index and rebuild it after an embedding
# model change.
#
# Supported subcommands:
#
#   file           -- Ingest a .txt or .pdf file under its file name
#   delete         -- Delete one document (--source) or all (--all --yes)
#   list           -- List stored documents with chunk counts
#   stats          -- Display index statistics (vector count, dimension)
#   recreate-index -- Drop and rebuild the index (--yes required)
#
# Providers are built by ``src.main.build_components`` so the CLI writes to
# the same store, with the same embedding model and dimension, as the server.
#
# Usage examples:
#   python -m src.cli.ingest file /path/to/handbook.pdf
#   python -m src.cli.ingest delete --source handbook.pdf
#   python -m src.cli.ingest delete --all --yes
#   python -m src.cli.ingest stats
#   python -m src.cli.ingest recreate-index --yes
# =============================================================================

"""Standalone CLI for managing the docchat document index.

Usage::

    python -m src.cli.ingest file /path/to/notes.txt
    python -m src.cli.ingest list
    python -m src.cli.ingest stats

No extra dependencies beyond the core project requirements.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from src.config.settings import Settings, validate_settings
from src.services.ingestion.document_extractor import content_type_for_path
from src.utils.errors import DocChatError

# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_file(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Read a file from disk and run it through the upload path."""
    path = Path(args.path)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    file_name = args.name or path.name
    content_type = content_type_for_path(path.name)
    print(f"Ingesting {path} as '{file_name}'")

    result = await components["document_service"].upload(
        file_name, content_type, path.read_bytes()
    )
    if not result.success:
        print(f"  {result.message}")
        return 1

    print(f"  {result.message}")
    return 0


async def _handle_delete(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Delete one document's chunks or, with ``--all --yes``, every document."""
    documents = components["document_service"]

    if args.all:
        if not args.yes:
            confirm = input("  Delete every document in the index? [y/N] ").strip().lower()
            if confirm not in ("y", "yes"):
                print("  Aborted.")
                return 0
        result = await documents.delete(delete_all=True)
    elif args.source:
        result = await documents.delete(file_name=args.source)
    else:
        print("Error: pass --source NAME or --all", file=sys.stderr)
        return 1

    print(f"  {result.message} ({result.deleted_count} vectors)")
    return 0


async def _handle_list(components: dict[str, Any]) -> int:
    documents = await components["document_service"].list_documents()
    if not documents:
        print("No documents stored.")
        return 0

    print(f"{'Document':<40} {'Chunks':>7}  Last updated")
    print("-" * 72)
    for doc in documents:
        print(f"{doc.file_name:<40} {doc.chunk_count:>7}  {doc.last_updated or '-'}")
    return 0


async def _handle_stats(components: dict[str, Any]) -> int:
    """Display index statistics."""
    vector_store = components["vector_store"]
    if not vector_store.is_available():
        print("Vector store not available.")
        return 1

    stats = await components["document_service"].stats()

    print("Index Statistics")
    print("=" * 40)
    print(f"  Store:         {vector_store.get_provider_name()}")
    print(f"  Total vectors: {stats.total_vectors}")
    print(f"  Dimension:     {stats.dimension if stats.dimension is not None else 'unknown'}")

    if stats.namespaces:
        print("\n  Namespaces:")
        for name, count in sorted(stats.namespaces.items()):
            print(f"    {name:<15} {count}")

    return 0


async def _handle_recreate(args: argparse.Namespace, components: dict[str, Any]) -> int:
    if not args.yes:
        print(
            "Error: recreating the index deletes every document; pass --yes to proceed",
            file=sys.stderr,
        )
        return 1

    stats = await components["document_service"].recreate_index(confirm=True)
    print(f"  Index recreated with {stats.dimension} dimensions.")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.ingest",
        description="Manage the docchat document index.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Index commands")

    # -- file --
    file_parser = subparsers.add_parser("file", help="Ingest a .txt or .pdf file")
    file_parser.add_argument("path", help="Path to the file")
    file_parser.add_argument(
        "--name", default=None, help="Source name to store it under (default: file name)"
    )

    # -- delete --
    delete_parser = subparsers.add_parser("delete", help="Delete documents from the index")
    delete_parser.add_argument("--source", default=None, help="File name of the document")
    delete_parser.add_argument("--all", action="store_true", help="Delete every document")
    delete_parser.add_argument(
        "--yes", "-y", action="store_true", help="Skip confirmation prompt"
    )

    # -- list / stats --
    subparsers.add_parser("list", help="List stored documents")
    subparsers.add_parser("stats", help="Show index statistics")

    # -- recreate-index --
    recreate_parser = subparsers.add_parser(
        "recreate-index", help="Drop and rebuild the index (deletes everything)"
    )
    recreate_parser.add_argument(
        "--yes", "-y", action="store_true", help="Confirm the rebuild"
    )

    return parser


async def _dispatch(args: argparse.Namespace, components: dict[str, Any]) -> int:
    if args.command == "file":
        return await _handle_file(args, components)
    if args.command == "delete":
        return await _handle_delete(args, components)
    if args.command == "list":
        return await _handle_list(components)
    if args.command == "stats":
        return await _handle_stats(components)
    return await _handle_recreate(args, components)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the index tool.

    Parses the subcommand, loads Settings from the environment / .env file,
    builds the same components the server uses and dispatches.  Only the
    ``file`` command needs working OpenAI credentials, so full settings
    validation runs for it alone.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()

    try:
        if args.command == "file":
            validate_settings(app_settings)

        from src.main import build_components

        components = build_components(app_settings)
        exit_code = asyncio.run(_dispatch(args, components))
    except DocChatError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
