"""Command-line entrypoint: recover readable text from a PDF URL."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from uuid import uuid4

import httpx

from pdf_text_recovery.application.errors import ExtractionError
from pdf_text_recovery.application.ports import SessionCredentials
from pdf_text_recovery.domain.extraction import DocumentDescriptor, ExtractionOutput
from pdf_text_recovery.infrastructure.config import load_extraction_settings
from pdf_text_recovery.infrastructure.factory import create_default_extraction_use_case
from pdf_text_recovery.infrastructure.logging_config import configure_logging, mask_secret
from pdf_text_recovery.infrastructure.security import KeyringSessionStore


def build_parser() -> argparse.ArgumentParser:
    """Return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="pdf-text-recovery",
        description="Extract and clean readable text from a remote PDF document.",
    )
    parser.add_argument(
        "url",
        nargs="?",
        default=None,
        help="Document URL (direct PDF link or Google Drive link).",
    )
    parser.add_argument("--title", default=None, help="Document title used in logs.")
    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Write recovered text to this file instead of stdout.",
    )
    parser.add_argument("--max-pages", type=int, default=None, help="Page cap for parsing.")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR.")
    credentials = parser.add_argument_group("session credentials")
    credentials.add_argument(
        "--store-token",
        default=None,
        metavar="TOKEN",
        help="Save the functions access token in the OS keyring.",
    )
    credentials.add_argument(
        "--api-key",
        default=None,
        help="Project API key saved alongside --store-token.",
    )
    credentials.add_argument(
        "--clear-credentials",
        action="store_true",
        help="Remove stored session credentials from the OS keyring.",
    )
    return parser


def _manage_credentials(args: argparse.Namespace, logger: logging.Logger) -> None:
    store = KeyringSessionStore()
    if args.clear_credentials:
        store.clear()
        logger.info("event=session_credentials_cleared")
    if args.store_token is not None:
        store.save(SessionCredentials(access_token=args.store_token, api_key=args.api_key))
        logger.info(
            "event=session_credentials_stored access_token=%s api_key=%s",
            mask_secret(args.store_token),
            mask_secret(args.api_key or ""),
        )


async def _extract(args: argparse.Namespace, logger: logging.Logger) -> ExtractionOutput:
    settings = load_extraction_settings()
    if args.max_pages is not None:
        settings = replace(settings, max_pages=args.max_pages)

    descriptor = DocumentDescriptor(url=args.url, title=args.title or args.url)
    async with httpx.AsyncClient(follow_redirects=True) as http_client:
        use_case = create_default_extraction_use_case(
            http_client=http_client,
            settings=settings,
            logger=logger,
        )
        return await use_case.execute(descriptor)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return a process exit code."""
    args = build_parser().parse_args(argv)
    try:
        logger = configure_logging(args.log_level)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    if args.api_key is not None and args.store_token is None:
        print("--api-key requires --store-token", file=sys.stderr)
        return 2

    if args.store_token is not None or args.clear_credentials:
        try:
            _manage_credentials(args, logger)
        except (ExtractionError, ValueError) as exc:
            print(f"Could not update stored credentials: {exc}", file=sys.stderr)
            return 1
        if args.url is None:
            return 0

    if args.url is None:
        print("A document URL is required.", file=sys.stderr)
        return 2

    try:
        output = asyncio.run(_extract(args, logger))
    except (ExtractionError, ValueError):
        correlation_id = str(uuid4())
        logger.exception("event=cli_extraction_failed correlation_id=%s", correlation_id)
        print(f"Could not process document. correlation_id={correlation_id}", file=sys.stderr)
        return 1

    if not output.success:
        print(f"{output.error} correlation_id={output.correlation_id}", file=sys.stderr)
        return 1

    if args.file is not None:
        args.file.write_text(output.text, encoding="utf-8")
    else:
        print(output.text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
