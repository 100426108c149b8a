"""Command line entry point: ``python -m myranking [serve|digest]``."""

from __future__ import annotations

import argparse
import asyncio
import json
from contextlib import AsyncExitStack
from typing import Sequence

import uvicorn

from app.config import settings
from app.models import DigestResult


async def send_digest_once() -> DigestResult:
    """Run the digest flow once with freshly opened upstream clients."""

    from app.main import build_ranking_service

    async with AsyncExitStack() as exit_stack:
        service = await build_ranking_service(exit_stack)
        return await service.send_digest()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="myranking", description="MY RANKING API server and jobs."
    )
    subcommands = parser.add_subparsers(dest="command")
    subcommands.add_parser("serve", help="start the HTTP API (default)")
    subcommands.add_parser("digest", help="push one trivia digest to LINE and exit")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.command == "digest":
        result = asyncio.run(send_digest_once())
        print(json.dumps(result.model_dump(mode="json"), ensure_ascii=False))
        return

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    main()
