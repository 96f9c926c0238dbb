"""
Credential persistence and the per-install device id.

The access token is stored in a JSON file readable only by the owner.
"""

import json
import uuid
from pathlib import Path
from typing import Optional

from loguru import logger

from gelly.jellyfin.models import Credentials

from .config import get_data_dir

CREDENTIALS_FILE = "credentials.json"
DEVICE_ID_FILE = "device_id"


def _get_credentials_path(data_dir: Optional[Path] = None) -> Path:
    return (data_dir or get_data_dir()) / CREDENTIALS_FILE


def get_device_id(data_dir: Optional[Path] = None) -> str:
    """Return the client device id, generating and storing it on first use."""
    path = (data_dir or get_data_dir()) / DEVICE_ID_FILE
    try:
        device_id = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        device_id = ""
    if device_id:
        return device_id

    device_id = str(uuid.uuid4())
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(device_id, encoding="utf-8")
    logger.debug(f"Generated device id {device_id}")
    return device_id


def load_credentials(data_dir: Optional[Path] = None) -> Optional[Credentials]:
    """Load saved credentials, or None if there are none."""
    path = _get_credentials_path(data_dir)
    if not path.exists():
        return None

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to load credentials from {path}: {e}")
        return None

    return Credentials(
        host=data.get("host", ""),
        access_token=data.get("access_token", ""),
        user_id=data.get("user_id", ""),
        device_id=get_device_id(data_dir),
    )


def save_credentials(credentials: Credentials, data_dir: Optional[Path] = None) -> None:
    """Save credentials to file with secure permissions."""
    path = _get_credentials_path(data_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(
            {
                "host": credentials.host,
                "access_token": credentials.access_token,
                "user_id": credentials.user_id,
            },
            f,
            indent=2,
        )

    path.chmod(0o600)
    logger.debug(f"Saved credentials to {path}")


def clear_credentials(data_dir: Optional[Path] = None) -> None:
    """Forget the stored token. The device id is kept."""
    path = _get_credentials_path(data_dir)
    path.unlink(missing_ok=True)
    logger.debug(f"Cleared credentials at {path}")
