"""Command-line access to docqa's ingestion, reindex and question answering.

Usage::

    python -m docqa.cli file --path /path/to/report.pdf
    python -m docqa.cli reindex
    python -m docqa.cli ask --question "What colour is the sky?"

The commands build the same services as the API server (same settings,
same ChromaDB collection, same document directory).  Exit code is 0 on
success and 1 when a docqa error is reported.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from docqa.config.loader import load_config
from docqa.config.settings import Settings
from docqa.utils.errors import DocQAError
from docqa.utils.logging import configure_logging


def _build_services(app_settings: Settings) -> dict[str, Any]:
    """Construct the service graph; imports deferred so ``--help`` stays fast."""
    from docqa.main import build_services

    return build_services(app_settings, load_config(settings=app_settings))


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_file(args: argparse.Namespace, services: dict[str, Any]) -> int:
    """Copy a file into the document directory and ingest it."""
    print(f"Ingesting: {args.path}")
    stored = services["document_store"].import_file(args.path)
    await services["vector_store"].ensure_collection_exists()
    result = await services["ingestion_service"].ingest(stored)

    print("\nIngestion complete:")
    print(f"  File:   {result.file_name}")
    print(f"  Pages:  {result.page_count}")
    print(f"  Chunks: {result.chunk_count}")
    return 0


async def _handle_reindex(args: argparse.Namespace, services: dict[str, Any]) -> int:
    """Rebuild the collection from every stored document."""
    result = await services["reindex_service"].reindex_all()
    print(result.message)
    print(f"  Documents: {result.document_count}")
    print(f"  Chunks:    {result.chunk_count}")
    return 0


async def _handle_ask(args: argparse.Namespace, services: dict[str, Any]) -> int:
    """Answer a question and list the passages it was based on."""
    result = await services["qa_service"].answer(args.question)
    print(result.answer)
    if result.sources:
        print("\nSources:")
        for index, source in enumerate(result.sources, start=1):
            page = f", p.{source.metadata.page}" if source.metadata.page else ""
            print(f"  [{index}] {source.metadata.source}{page}: {source.content}")
    return 0


_HANDLERS = {
    "file": _handle_file,
    "reindex": _handle_reindex,
    "ask": _handle_ask,
}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m docqa.cli",
        description="Ingest documents and ask questions about them.",
    )
    subparsers = parser.add_subparsers(dest="command")

    file_parser = subparsers.add_parser("file", help="Ingest a single document")
    file_parser.add_argument("--path", required=True, help="Path to a .pdf, .txt or .md file")

    subparsers.add_parser("reindex", help="Rebuild the collection from the document directory")

    ask_parser = subparsers.add_parser("ask", help="Ask a question about the documents")
    ask_parser.add_argument("--question", required=True, help="The question to answer")

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    app_settings = Settings()
    configure_logging(log_level=app_settings.log_level, json_output=False)

    try:
        services = _build_services(app_settings)
        return asyncio.run(_HANDLERS[args.command](args, services))
    except DocQAError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
