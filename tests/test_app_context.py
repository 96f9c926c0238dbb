"""Tests for AppContext wiring and the CLI parser."""

import time
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from gelly.cli import build_parser, main
from gelly.context import AppContext
from gelly.core.config import Config
from gelly.core.credentials import load_credentials
from gelly.jellyfin.exceptions import TransportError
from gelly.jellyfin.models import Credentials, ItemsPage, LibrarySnapshot

from conftest import make_item

CACHED_LIBRARY = b'{"Items": [{"Id": "cached", "Name": "c"}], "TotalRecordCount": 1}'


@pytest.fixture
def ctx(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, credentials: Credentials):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    config = Config()
    config.server.library_id = "lib-1"
    context = AppContext.create(
        config,
        credentials=credentials,
        cache_root=tmp_path / "cache",
        data_dir=tmp_path / "data",
    )
    yield context
    context.close()


class TestAppContext:
    """Tests for AppContext operations."""

    def test_setup_complete(self, ctx: AppContext) -> None:
        assert ctx.setup_complete
        ctx.config.server.library_id = ""
        assert not ctx.setup_complete

    def test_library_cache_is_compressed(self, ctx: AppContext, tmp_path: Path) -> None:
        assert ctx.library_sync.cache.compress
        assert ctx.library_sync.cache.cache_dir == tmp_path / "cache" / "library"
        assert ctx.media.image_cache.cache_dir == tmp_path / "cache" / "album-art"

    def test_refresh_library_swaps_and_calls_back(self, ctx: AppContext) -> None:
        page = ItemsPage(items=[make_item("t1")], total_record_count=1)
        results = []

        with patch.object(ctx.client, "get_library_page", return_value=page):
            ctx.refresh_library(results.append)
            for _ in range(200):
                ctx.runner.process_pending()
                if results:
                    break
                time.sleep(0.01)

        assert results[0].ok
        assert [i.id for i in ctx.library.get().items] == ["t1"]

    def test_failed_refresh_reports_error(self, ctx: AppContext) -> None:
        old = ctx.library.get()
        results = []

        with patch.object(
            ctx.client, "get_library_page", side_effect=TransportError("offline")
        ):
            ctx.refresh_library(results.append)
            for _ in range(200):
                ctx.runner.process_pending()
                if results:
                    break
                time.sleep(0.01)

        assert isinstance(results[0].error, TransportError)
        assert ctx.library.get() is old

    def test_load_library_uses_cache(self, ctx: AppContext) -> None:
        ctx.library_sync.cache.save("library.json", CACHED_LIBRARY)

        with patch.object(ctx.client, "get_library_page") as get_page:
            snapshot = ctx.load_library()

        get_page.assert_not_called()
        assert [i.id for i in snapshot.items] == ["cached"]
        assert ctx.library.get() is snapshot

    def test_refresh_on_startup_skips_cache(self, ctx: AppContext) -> None:
        """With refresh_on_startup set, every load goes to the server."""
        ctx.config.playback.refresh_on_startup = True
        ctx.library_sync.cache.save("library.json", CACHED_LIBRARY)
        page = ItemsPage(items=[make_item("fresh")], total_record_count=1)

        with patch.object(ctx.client, "get_library_page", return_value=page) as get_page:
            snapshot = ctx.load_library()

        get_page.assert_called_once()
        assert [i.id for i in snapshot.items] == ["fresh"]

    def test_login_persists(self, ctx: AppContext, tmp_path: Path) -> None:
        new_creds = Credentials("http://new", "tok", "u-2", "device-1")

        with patch.object(ctx.client, "authenticate", return_value=new_creds):
            ctx.login("new", "alice", "pw")

        assert load_credentials(tmp_path / "data").access_token == "tok"
        assert ctx.config.server.host == "http://new"
        assert (tmp_path / "config" / "gelly" / "config.toml").exists()

    def test_logout_drops_everything(self, ctx: AppContext, tmp_path: Path) -> None:
        ctx.library.swap(LibrarySnapshot((make_item("t1"),), 1))

        ctx.logout()

        assert not ctx.client.is_authenticated
        assert len(ctx.library.get()) == 0
        assert ctx.config.server.library_id == ""
        assert load_credentials(tmp_path / "data") is None

    def test_clear_caches(self, ctx: AppContext) -> None:
        ctx.media.image_cache.save("album-1", b"png")
        ctx.library_sync.cache.save("library.json", b"{}")

        assert ctx.clear_caches() == ["library", "album-art"]
        assert ctx.media.image_cache.load("album-1") is None
        assert ctx.library_sync.cache.load("library.json") is None


class TestCli:
    def test_parser_subcommands(self) -> None:
        args = build_parser().parse_args(["library", "--refresh", "--limit", "5"])

        assert args.command == "library"
        assert args.refresh is True
        assert args.limit == 5

    def test_art_fallback(self) -> None:
        args = build_parser().parse_args(["art", "t1", "out.png", "--fallback", "al-1"])
        assert (args.item_id, args.output, args.fallback) == ("t1", "out.png", "al-1")

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_error_exit_code(self, tmp_path: Path, monkeypatch, capsys) -> None:
        """Jellyfin errors become a message and exit status 1."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
        fake_ctx = Mock(spec=AppContext)
        fake_ctx.client = Mock()
        fake_ctx.client.get_views.side_effect = TransportError("offline")
        fake_ctx.config = Config()

        with patch("gelly.cli.setup_loguru"), patch(
            "gelly.cli.AppContext.create", return_value=fake_ctx
        ):
            assert main(["views"]) == 1

        fake_ctx.close.assert_called_once()
        assert "Can't reach the server" in capsys.readouterr().err
        assert (tmp_path / "data" / "gelly").is_dir()
