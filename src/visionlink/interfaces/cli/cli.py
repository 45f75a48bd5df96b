from __future__ import annotations

import argparse
import asyncio
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import httpx
import structlog
import uvicorn
from pydantic import ValidationError

from visionlink.domain.entities.resolution import StepStarted
from visionlink.domain.exceptions import (
    ChainExhausted,
    InvalidRequest,
    PlayerNotFound,
    VisionLinkError,
)
from visionlink.domain.ports import PlayerPort
from visionlink.infrastructure.config import AppConfig, load_config
from visionlink.infrastructure.logging.setup import configure_logging
from visionlink.infrastructure.playback.player import SubprocessPlayer
from visionlink.infrastructure.tmdb.client import HttpxTmdbClient
from visionlink.interfaces.composition import (
    build_browser_pool,
    build_metadata_client,
    build_resolve_use_case,
    build_source_settings,
)
from visionlink.interfaces.main import build_app

log = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_USAGE = 2


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="visionlink")

    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )
    for n in (1, 2, 3):
        parser.add_argument(
            f"--source{n}",
            dest=f"source{n}_url",
            default=None,
            help=f"Override base URL of source {n}.",
        )

    sub = parser.add_subparsers(dest="command", required=True)

    resolve = sub.add_parser("resolve", help="Resolve an episode to a video URL.")
    resolve.add_argument("title")
    resolve.add_argument("--season", "-s", type=int, default=1)
    resolve.add_argument("--episode", "-e", type=int, default=1)
    resolve.add_argument(
        "--force-search",
        action="store_true",
        help="Skip the site steps and go straight to web search.",
    )
    resolve.add_argument(
        "--play",
        action="store_true",
        help="Hand the resolved URL to the configured player.",
    )

    search = sub.add_parser("search", help="Search titles on TMDB.")
    search.add_argument("query")

    seasons = sub.add_parser("seasons", help="List seasons of a TV show.")
    seasons.add_argument("tv_id", type=int)

    episodes = sub.add_parser("episodes", help="List episodes of a season.")
    episodes.add_argument("tv_id", type=int)
    episodes.add_argument("season", type=int)

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument(
        "--host",
        default=None,
        help="Bind host (overrides HOST env).",
    )
    serve.add_argument(
        "--port",
        default=None,
        type=int,
        help="Bind port (overrides PORT env).",
    )

    return parser.parse_args(argv)


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for key in ("log_level", "log_format", "source1_url", "source2_url", "source3_url"):
        value = getattr(args, key, None)
        if value:
            overrides[key] = value
    return overrides


def _first_line(exc: Exception) -> str:
    # pydantic errors span several lines; the CLI reports one.
    if isinstance(exc, ValidationError):
        err = exc.errors()[0]
        loc = ".".join(str(part) for part in err["loc"])
        return f"{loc}: {err['msg']}"
    return str(exc).splitlines()[0]


def _print_step(event: StepStarted) -> None:
    print(f"[{event.step_index}] {event.step_name}: {event.url}", file=sys.stderr)


async def _resolve(config: AppConfig, args: argparse.Namespace) -> int:
    pool = build_browser_pool(config)
    resolve_uc = build_resolve_use_case(config, pool, build_source_settings(config))
    try:
        video_url = await resolve_uc.resolve_url(
            args.title,
            args.season,
            args.episode,
            force_final=args.force_search,
            on_step=_print_step,
        )
    except ChainExhausted:
        print("no video found", file=sys.stderr)
        return EXIT_NOT_FOUND
    finally:
        await pool.cleanup()

    print(video_url)
    if args.play:
        player: PlayerPort = SubprocessPlayer(
            config.player_command, user_agent=config.playwright_user_agent
        )
        player.play(video_url, title=f"{args.title} S{args.season}E{args.episode}")
    return EXIT_OK


async def _metadata(config: AppConfig, args: argparse.Namespace) -> int:
    async with httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        follow_redirects=True,
    ) as http_client:
        client: HttpxTmdbClient | None = build_metadata_client(config, http_client)
        if client is None:
            print("TMDB API key not configured", file=sys.stderr)
            return EXIT_USAGE

        if args.command == "search":
            for item in await client.search(args.query):
                year = f" ({item.year})" if item.year else ""
                print(f"{item.id}\t{item.media_type}\t{item.title}{year}")
        elif args.command == "seasons":
            for season in await client.seasons(args.tv_id):
                print(
                    f"{season.season_number}\t{season.name}"
                    f"\t{season.episode_count} episodes"
                )
        else:
            for ep in await client.episodes(args.tv_id, args.season):
                print(f"{ep.episode_number}\t{ep.name}")
    return EXIT_OK


def _serve(config: AppConfig, args: argparse.Namespace, log_config: dict[str, Any]) -> int:
    host = args.host or os.getenv("HOST", "127.0.0.1")
    port = int(args.port or os.getenv("PORT", "8765"))
    uvicorn.run(
        build_app(config),
        host=host,
        port=port,
        log_config=log_config,
    )
    return EXIT_OK


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Config is loaded exactly once here and handed to the chosen command.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    config_path = Path(args.config) if args.config else None
    dotenv_path = Path(args.dotenv) if args.dotenv else None

    try:
        config = load_config(
            config_path=config_path,
            dotenv_path=dotenv_path,
            cli_overrides=_cli_overrides(args),
        )
    except FileNotFoundError as exc:
        print(f"config file not found: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except (ValidationError, ValueError) as exc:
        print(f"invalid configuration: {_first_line(exc)}", file=sys.stderr)
        return EXIT_USAGE

    log_config = configure_logging(config)

    if args.command == "serve":
        return _serve(config, args, log_config)

    try:
        if args.command == "resolve":
            return asyncio.run(_resolve(config, args))
        return asyncio.run(_metadata(config, args))
    except InvalidRequest as exc:
        print(f"invalid request: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except PlayerNotFound as exc:
        print(f"player error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except VisionLinkError as exc:
        log.error("command_failed", command=args.command, error=str(exc))
        return EXIT_NOT_FOUND


if __name__ == "__main__":
    raise SystemExit(start())
