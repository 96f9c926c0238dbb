"""Application context: wires config, client, caches and background tasks.

UI code holds one AppContext and goes through it; there is no module-level
client or settings state.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional

from loguru import logger

from gelly.cache import ALBUM_ART_STORE, LIBRARY_STORE, DiskCache, get_cache_directory
from gelly.core import credentials as credential_store
from gelly.core.config import Config, save_config
from gelly.core.tasks import TaskResult, TaskRunner
from gelly.jellyfin.client import ApiClient
from gelly.jellyfin.models import Credentials, LibrarySnapshot
from gelly.library.media import MediaFetcher
from gelly.library.sync import LibrarySync, SnapshotCell


@dataclass
class AppContext:
    """Everything the UI needs to talk to the server.

    Attributes:
        config: Application configuration
        client: API client owning the current credentials
        library_sync: Cached library/playlist loader
        media: Cached album art and stream addresses
        library: Current library snapshot, swapped whole on refresh
        runner: Thread pool and UI completion queue
    """

    config: Config
    client: ApiClient
    library_sync: LibrarySync
    media: MediaFetcher
    runner: TaskRunner
    library: SnapshotCell = field(default_factory=SnapshotCell)
    data_dir: Optional[Path] = None

    @classmethod
    def create(
        cls,
        config: Config,
        credentials: Optional[Credentials] = None,
        cache_root: Optional[Path] = None,
        data_dir: Optional[Path] = None,
    ) -> "AppContext":
        """Build a context from config and (optionally) saved credentials."""
        if credentials is None:
            credentials = credential_store.load_credentials(data_dir) or Credentials(
                host=config.server.host,
                device_id=credential_store.get_device_id(data_dir),
            )

        poll_interval = config.cache.poll_interval_ms / 1000
        client = ApiClient(credentials, max_bitrate=config.playback.max_bitrate)
        library_cache = DiskCache(
            get_cache_directory(LIBRARY_STORE, cache_root),
            poll_interval=poll_interval,
            compress=config.cache.compress_library,
        )
        image_cache = DiskCache(
            get_cache_directory(ALBUM_ART_STORE, cache_root),
            poll_interval=poll_interval,
        )

        return cls(
            config=config,
            client=client,
            library_sync=LibrarySync(
                client,
                library_cache,
                page_size=config.cache.page_size,
                max_workers=config.cache.max_workers,
            ),
            media=MediaFetcher(client, image_cache),
            runner=TaskRunner(max_workers=config.cache.max_workers),
            data_dir=data_dir,
        )

    @property
    def setup_complete(self) -> bool:
        return self.client.is_authenticated and bool(self.config.server.library_id)

    def login(self, host: str, username: str, password: str) -> Credentials:
        """Authenticate, then persist credentials and host."""
        credentials = self.client.authenticate(host, username, password)
        credential_store.save_credentials(credentials, self.data_dir)
        self.config.server.host = credentials.host
        save_config(self.config)
        return credentials

    def logout(self) -> None:
        """Forget token, user and library selection; drop the snapshot."""
        self.client.logout()
        credential_store.clear_credentials(self.data_dir)
        self.library.swap(LibrarySnapshot())
        self.config.server.library_id = ""
        save_config(self.config)
        logger.info("Logged out")

    def select_library(self, library_id: str) -> None:
        self.config.server.library_id = library_id
        save_config(self.config)

    def load_library(self, force_refresh: bool = False) -> LibrarySnapshot:
        """Load the selected library into the snapshot cell.

        playback.refresh_on_startup forces a server fetch on every load.
        """
        force_refresh = force_refresh or self.config.playback.refresh_on_startup
        return self.library_sync.refresh(
            self.library, self.config.server.library_id, force_refresh=force_refresh
        )

    def refresh_library(
        self,
        callback: Optional[Callable[[TaskResult[LibrarySnapshot]], Any]] = None,
        force_refresh: bool = True,
    ) -> None:
        """Reload the library in the background and swap it in when done.

        callback runs on the UI loop (via runner.process_pending()).
        """
        library_id = self.config.server.library_id
        self.runner.spawn(
            self.library_sync.refresh,
            callback,
            self.library,
            library_id,
            force_refresh,
        )

    def clear_caches(self) -> List[str]:
        """Delete both caches. Returns the names of stores that were cleared."""
        cleared = []
        for name, cache in (
            (LIBRARY_STORE, self.library_sync.cache),
            (ALBUM_ART_STORE, self.media.image_cache),
        ):
            cache.clear()
            cleared.append(name)
        return cleared

    def close(self) -> None:
        self.runner.shutdown(wait=False)
        self.client.close()
