"""Tests for credential persistence and the device id."""

import stat
from pathlib import Path

from gelly.core.credentials import (
    clear_credentials,
    get_device_id,
    load_credentials,
    save_credentials,
)
from gelly.jellyfin.models import Credentials


class TestDeviceId:
    def test_generated_once(self, tmp_path: Path) -> None:
        first = get_device_id(tmp_path)

        assert first
        assert get_device_id(tmp_path) == first
        assert (tmp_path / "device_id").read_text() == first


class TestCredentialStore:
    """Tests for save/load/clear."""

    def test_missing_is_none(self, tmp_path: Path) -> None:
        assert load_credentials(tmp_path) is None

    def test_round_trip(self, tmp_path: Path) -> None:
        device_id = get_device_id(tmp_path)
        creds = Credentials("http://h:8096", "tok", "user-1", device_id)

        save_credentials(creds, tmp_path)

        assert load_credentials(tmp_path) == creds

    def test_file_is_owner_only(self, tmp_path: Path) -> None:
        save_credentials(Credentials("http://h", "tok", "u"), tmp_path)

        mode = stat.S_IMODE((tmp_path / "credentials.json").stat().st_mode)
        assert mode == 0o600

    def test_corrupt_file_is_none(self, tmp_path: Path) -> None:
        (tmp_path / "credentials.json").write_text("{oops")
        assert load_credentials(tmp_path) is None

    def test_clear_keeps_device_id(self, tmp_path: Path) -> None:
        device_id = get_device_id(tmp_path)
        save_credentials(Credentials("http://h", "tok", "u", device_id), tmp_path)

        clear_credentials(tmp_path)
        clear_credentials(tmp_path)

        assert load_credentials(tmp_path) is None
        assert get_device_id(tmp_path) == device_id
