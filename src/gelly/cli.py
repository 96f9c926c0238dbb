"""
Gelly CLI - command-line front end for the Jellyfin data layer.
"""

import argparse
import getpass
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from gelly.context import AppContext
from gelly.core.config import ensure_directories, get_data_dir, load_config
from gelly.core.console import safe_print
from gelly.core.output import log, setup_loguru
from gelly.jellyfin import JellyfinError, describe_error
from gelly.library.playlists import PlaylistType, smart_playlists
from gelly.library.utils import albums_from_library, format_duration


def _require_library(ctx: AppContext) -> Optional[str]:
    if not ctx.client.is_authenticated:
        safe_print(
            "Not logged in. Run: gelly login HOST USERNAME", style="error", err=True
        )
        return None
    library_id = ctx.config.server.library_id
    if not library_id:
        safe_print(
            "No library selected. Run: gelly views --select ID",
            style="error",
            err=True,
        )
        return None
    return library_id


def cmd_login(ctx: AppContext, args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    credentials = ctx.login(args.host, args.username, password)
    log(f"Logged in to {credentials.host}", "success")
    return 0


def cmd_logout(ctx: AppContext, args: argparse.Namespace) -> int:
    ctx.logout()
    safe_print("Logged out")
    return 0


def cmd_views(ctx: AppContext, args: argparse.Namespace) -> int:
    if args.select:
        ctx.select_library(args.select)
        safe_print(f"Selected library {args.select}", style="success")
        return 0

    for view in ctx.client.get_views():
        marker = "*" if view.id == ctx.config.server.library_id else " "
        kind = f" [{view.collection_type}]" if view.collection_type else ""
        safe_print(f"{marker} {view.id}  {view.name}{kind}")
    return 0


def cmd_library(ctx: AppContext, args: argparse.Namespace) -> int:
    library_id = _require_library(ctx)
    if library_id is None:
        return 1

    snapshot = ctx.load_library(force_refresh=args.refresh)
    for item in snapshot.items[: args.limit]:
        safe_print(
            f"{item.id}  {item.primary_artist} - {item.title} "
            f"({format_duration(item.duration_ticks)})"
        )
    safe_print(f"{len(snapshot)} of {snapshot.total_record_count} items", style="cyan")
    if snapshot.is_partial:
        log(
            f"Library partially loaded ({len(snapshot)} of "
            f"{snapshot.total_record_count} items)",
            "warning",
        )
    return 0


def cmd_albums(ctx: AppContext, args: argparse.Namespace) -> int:
    library_id = _require_library(ctx)
    if library_id is None:
        return 1

    snapshot = ctx.load_library()
    for album in albums_from_library(snapshot.items):
        safe_print(f"{album.id}  {album.artists_string} - {album.name}")
    return 0


def cmd_playlists(ctx: AppContext, args: argparse.Namespace) -> int:
    for smart in smart_playlists():
        safe_print(f"{smart.to_id()}  {smart.display_name}", style="muted")
    for playlist in ctx.library_sync.get_playlists(force_refresh=args.refresh):
        safe_print(f"{playlist.id}  {playlist.name} ({playlist.child_count})")
    return 0


def cmd_playlist(ctx: AppContext, args: argparse.Namespace) -> int:
    library_id = _require_library(ctx)
    if library_id is None:
        return 1

    snapshot = ctx.load_library()
    playlist_type = PlaylistType.from_id(args.playlist_id)
    songs = playlist_type.load_items(args.playlist_id, ctx.client, snapshot.items)
    for index, item in enumerate(songs, start=1):
        safe_print(f"{index:>3}. {item.primary_artist} - {item.title}")
    return 0


def cmd_art(ctx: AppContext, args: argparse.Namespace) -> int:
    image = ctx.media.get_images(args.item_id, args.fallback)
    Path(args.output).write_bytes(image)
    safe_print(f"Wrote {len(image)} bytes to {args.output}", style="success")
    return 0


def cmd_stream_uri(ctx: AppContext, args: argparse.Namespace) -> int:
    print(ctx.media.stream_uri(args.item_id))
    return 0


def cmd_lyrics(ctx: AppContext, args: argparse.Namespace) -> int:
    lyrics = ctx.client.fetch_lyrics(args.item_id)
    for line in lyrics.lines:
        safe_print(line.text)
    return 0


def cmd_rescan(ctx: AppContext, args: argparse.Namespace) -> int:
    library_id = _require_library(ctx)
    if library_id is None:
        return 1
    ctx.client.request_library_rescan(library_id)
    log(f"Library rescan requested for {library_id}", "success")
    return 0


def cmd_clear_cache(ctx: AppContext, args: argparse.Namespace) -> int:
    cleared = ctx.clear_caches()
    safe_print(f"Cleared caches: {', '.join(cleared)}", style="success")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gelly", description="Browse a Jellyfin music library"
    )
    parser.add_argument("--debug", action="store_true", help="Log to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Authenticate against a server")
    login.add_argument("host")
    login.add_argument("username")
    login.add_argument("--password", help="Prompted for if omitted")
    login.set_defaults(func=cmd_login)

    sub.add_parser("logout", help="Forget saved credentials").set_defaults(
        func=cmd_logout
    )

    views = sub.add_parser("views", help="List or select library roots")
    views.add_argument("--select", metavar="ID", help="Use this library")
    views.set_defaults(func=cmd_views)

    library = sub.add_parser("library", help="List library tracks")
    library.add_argument("--refresh", action="store_true", help="Bypass the cache")
    library.add_argument("--limit", type=int, default=50)
    library.set_defaults(func=cmd_library)

    sub.add_parser("albums", help="List albums").set_defaults(func=cmd_albums)

    playlists = sub.add_parser("playlists", help="List playlists")
    playlists.add_argument("--refresh", action="store_true", help="Bypass the cache")
    playlists.set_defaults(func=cmd_playlists)

    playlist = sub.add_parser("playlist", help="List tracks of a playlist")
    playlist.add_argument("playlist_id")
    playlist.set_defaults(func=cmd_playlist)

    art = sub.add_parser("art", help="Save an item's album art")
    art.add_argument("item_id")
    art.add_argument("output")
    art.add_argument("--fallback", metavar="ID", help="Item to use if none exists")
    art.set_defaults(func=cmd_art)

    stream = sub.add_parser("stream-uri", help="Print the stream address of a track")
    stream.add_argument("item_id")
    stream.set_defaults(func=cmd_stream_uri)

    lyrics = sub.add_parser("lyrics", help="Print lyrics of a track")
    lyrics.add_argument("item_id")
    lyrics.set_defaults(func=cmd_lyrics)

    sub.add_parser("rescan", help="Ask the server to rescan the library").set_defaults(
        func=cmd_rescan
    )
    sub.add_parser("clear-cache", help="Delete cached metadata and art").set_defaults(
        func=cmd_clear_cache
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = load_config()
    ensure_directories()
    log_file = (
        Path(config.logging.log_file)
        if config.logging.log_file
        else get_data_dir() / "gelly.log"
    )
    setup_loguru(
        log_file,
        level=config.logging.level,
        console_output=config.logging.console_output or args.debug,
    )

    ctx = AppContext.create(config)
    try:
        return args.func(ctx, args)
    except JellyfinError as e:
        logger.error(f"{args.command} failed: {e}")
        safe_print(describe_error(e)["message"], style="error", err=True)
        return 1
    finally:
        ctx.close()


if __name__ == "__main__":
    sys.exit(main())
