# =============================================================================
# knowledge_hub/cli/ingest.py - Operator CLI for the article store
# =============================================================================
#
# Standalone CLI for loading and inspecting the knowledge base without the
# HTTP server.  It talks to the same SQLite database (DB_PATH) and uses the
# same services as the API, so identifiers minted here never collide with
# identifiers minted by the server.
#
# Supported subcommands:
#
#   import-text  - Split a text file into articles (marker/heading/markup)
#   upload       - Ingest a .docx/.pdf/.txt/.md/.html document
#   search       - Ranked search over published articles
#   stats        - Article counts by status/category and counter values
#   issue-token  - Print a signed bearer token for the write routes
#
# Usage examples:
#   python -m knowledge_hub.cli import-text --file sop.txt --tags bulk,sop
#   python -m knowledge_hub.cli import-text --file sop.txt --prefix KB --start 5000
#   python -m knowledge_hub.cli upload --file handbook.docx --mode split
#   python -m knowledge_hub.cli search --query "reset password"
#   python -m knowledge_hub.cli issue-token --id alice --role admin
# =============================================================================

"""Standalone CLI for the knowledge hub article store.

Usage::

    python -m knowledge_hub.cli import-text --file /path/to/sop.txt
    python -m knowledge_hub.cli upload --file /path/to/handbook.pdf --mode single
    python -m knowledge_hub.cli search --query "vpn"
    python -m knowledge_hub.cli stats
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from knowledge_hub.config.loader import load_config
from knowledge_hub.config.settings import Settings
from knowledge_hub.models.article import Identity, ImportResult
from knowledge_hub.providers.converter.document_converter import DocumentConverter
from knowledge_hub.providers.identity.signed_token_provider import SignedTokenIdentityProvider
from knowledge_hub.providers.store.sqlite_article_store import SQLiteArticleStore
from knowledge_hub.services.identifier_allocator import IdentifierAllocator
from knowledge_hub.services.ingestion_service import IngestionService
from knowledge_hub.services.search_ranker import SearchRanker
from knowledge_hub.services.section_splitter import SplitFormat
from knowledge_hub.utils.errors import KnowledgeHubError


# ---------------------------------------------------------------------------
# Component builders
# ---------------------------------------------------------------------------


def _build_store(app_settings: Settings) -> SQLiteArticleStore:
    return SQLiteArticleStore(
        db_path=app_settings.db_path,
        timeout=app_settings.store_timeout_seconds,
    )


def _build_ingestion_service(app_settings: Settings, store: SQLiteArticleStore) -> IngestionService:
    """Construct the ingestion service the same way the API does."""
    ingestion_config = load_config(settings=app_settings).get("ingestion", {})
    allocator = IdentifierAllocator(
        store,
        counter_name=app_settings.counter_name,
        prefix=app_settings.identifier_prefix,
        pad_width=app_settings.identifier_pad_width,
        initial_value=app_settings.counter_initial_value,
    )
    return IngestionService(
        store,
        allocator,
        DocumentConverter(heading_tag=app_settings.markup_heading_tag),
        summary_budget=app_settings.summary_budget,
        marker=app_settings.split_marker,
        heading_tag=app_settings.markup_heading_tag,
        default_split_format=SplitFormat.parse(app_settings.default_split_format),
        import_tags=ingestion_config.get("import_tags"),
        upload_tags=ingestion_config.get("upload_tags"),
        allowed_extensions=ingestion_config.get("allowed_extensions"),
        max_upload_bytes=app_settings.max_upload_bytes,
    )


def _split_tags(raw: str | None) -> list[str] | None:
    return raw.split(",") if raw else None


def _print_import_result(result: ImportResult) -> None:
    print("\nImport complete:")
    print(f"  Articles created: {result.created}")
    if result.identifiers:
        print(f"  First:            {result.first_identifier}")
        print(f"  Last:             {result.last_identifier}")
    if result.duplicates:
        print(f"  Duplicates:       {', '.join(result.duplicates)}")


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_import_text(args: argparse.Namespace, app_settings: Settings) -> int:
    """Split a text file into articles."""
    if args.file == "-":
        text = sys.stdin.read()
    else:
        text = Path(args.file).read_text(encoding="utf-8")
    print(f"Importing text: {args.file} ({len(text)} chars)")

    store = _build_store(app_settings)
    await store.initialize()
    service = _build_ingestion_service(app_settings, store)

    result = await service.import_text(
        text,
        prefix=args.prefix,
        start_number=args.start,
        tags=_split_tags(args.tags),
        split_format=args.format,
        category=args.category,
        status=args.status,
    )
    _print_import_result(result)
    return 0


async def _handle_upload(args: argparse.Namespace, app_settings: Settings) -> int:
    """Convert a document and store it as one or many articles."""
    path = Path(args.file)
    print(f"Uploading document: {path.name} (mode: {args.mode})")

    store = _build_store(app_settings)
    await store.initialize()
    service = _build_ingestion_service(app_settings, store)

    result = await service.ingest_upload(
        path.read_bytes(),
        path.name,
        mode=args.mode,
        tags=_split_tags(args.tags),
        split_format=args.format,
        category=args.category,
    )
    _print_import_result(result)
    return 0


async def _handle_search(args: argparse.Namespace, app_settings: Settings) -> int:
    """Print ranked search results."""
    store = _build_store(app_settings)
    await store.initialize()
    ranker = SearchRanker(
        store,
        default_limit=app_settings.search_default_limit,
        max_limit=app_settings.search_max_limit,
    )

    hits = await ranker.search(args.query, args.limit)
    if not hits:
        print("No results.")
        return 0

    for hit in hits:
        score = "id match" if hit.matched_identifier else f"{hit.score:.3f}"
        print(f"{hit.article.identifier:<12} [{score}] {hit.article.title}")
        if hit.article.summary:
            print(f"{'':<12} {hit.article.summary}")
    return 0


async def _handle_stats(app_settings: Settings) -> int:
    """Display article statistics."""
    store = _build_store(app_settings)
    await store.initialize()
    stats = await store.get_stats()

    print("Knowledge Base Statistics")
    print("=" * 40)
    print(f"  Total articles:   {stats['total_articles']}")

    if stats["by_status"]:
        print("\n  Articles by status:")
        for status, count in sorted(stats["by_status"].items()):
            print(f"    {status:<15} {count}")

    if stats["by_category"]:
        print("\n  Articles by category:")
        for category, count in stats["by_category"].items():
            print(f"    {category:<15} {count}")

    if stats["counters"]:
        print("\n  Counters:")
        for name, value in sorted(stats["counters"].items()):
            print(f"    {name:<15} {value}")

    return 0


def _handle_issue_token(args: argparse.Namespace, app_settings: Settings) -> int:
    """Print a signed bearer token."""
    if not app_settings.auth_enabled():
        print("Error: AUTH_SECRET is not set; write routes are open.", file=sys.stderr)
        return 1

    provider = SignedTokenIdentityProvider(
        secret=app_settings.auth_secret,
        ttl_hours=app_settings.auth_token_ttl_hours,
    )
    identity = Identity(id=args.id, role=args.role, department=args.department)
    print(provider.issue_token(identity))
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the knowledge hub CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m knowledge_hub.cli",
        description="Load, search and inspect the knowledge hub article store.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")
    formats = [f.value for f in SplitFormat]

    # -- import-text --
    import_parser = subparsers.add_parser("import-text", help="Split a text file into articles")
    import_parser.add_argument("--file", required=True, help="Path to the text file ('-' for stdin)")
    import_parser.add_argument("--prefix", default=None, help="Identifier prefix (default: KB)")
    import_parser.add_argument("--start", type=int, default=None, help="Starting number to try")
    import_parser.add_argument("--tags", default=None, help="Comma-separated tags (default: bulk)")
    import_parser.add_argument("--format", choices=formats, default=None, help="Split strategy")
    import_parser.add_argument("--category", default=None, help="Category for every article")
    import_parser.add_argument("--status", choices=["published", "draft"], default=None)

    # -- upload --
    upload_parser = subparsers.add_parser("upload", help="Ingest a document file")
    upload_parser.add_argument("--file", required=True, help="Path to the document")
    upload_parser.add_argument("--mode", choices=["single", "split"], default="split")
    upload_parser.add_argument("--tags", default=None, help="Comma-separated tags (default: upload)")
    upload_parser.add_argument("--format", choices=formats, default=None, help="Split strategy")
    upload_parser.add_argument("--category", default=None, help="Category for every article")

    # -- search --
    search_parser = subparsers.add_parser("search", help="Search published articles")
    search_parser.add_argument("--query", required=True, help="Search text or identifier fragment")
    search_parser.add_argument("--limit", type=int, default=None, help="Maximum results")

    # -- stats --
    subparsers.add_parser("stats", help="Show article statistics")

    # -- issue-token --
    token_parser = subparsers.add_parser("issue-token", help="Print a signed bearer token")
    token_parser.add_argument("--id", required=True, help="Caller id")
    token_parser.add_argument("--role", required=True, help="Caller role, e.g. admin")
    token_parser.add_argument("--department", default=None, help="Caller department")

    return parser


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parses the subcommand, loads Settings from environment variables / .env
    and dispatches to the matching handler.  Domain errors are printed to
    stderr with exit code 1.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()

    try:
        if args.command == "import-text":
            exit_code = asyncio.run(_handle_import_text(args, app_settings))
        elif args.command == "upload":
            exit_code = asyncio.run(_handle_upload(args, app_settings))
        elif args.command == "search":
            exit_code = asyncio.run(_handle_search(args, app_settings))
        elif args.command == "stats":
            exit_code = asyncio.run(_handle_stats(app_settings))
        elif args.command == "issue-token":
            exit_code = _handle_issue_token(args, app_settings)
        else:
            parser.print_help()
            exit_code = 1
    except (KnowledgeHubError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
