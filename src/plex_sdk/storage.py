"""In-memory credential store."""

import logging
import threading
from enum import StrEnum
from typing import Any

logger = logging.getLogger("plex-sdk.storage")


class StoreKey(StrEnum):
    """Keys used by credentials providers."""

    DEVICE_KEYPAIR = "device_keypair"
    CONTROL_PLANE_TOKEN = "control_plane_token"
    CONTROL_PLANE_TOKEN_EXP = "control_plane_token_exp"
    CONNECTION = "connection"


class InMemoryStore:
    """Lock-guarded dict implementing the CredentialStore protocol.

    Suitable for tests and single-process hosts. Values are kept in process
    memory only; use a keyring or vault backed store to persist device keys
    across restarts.
    """

    def __init__(self, initial: dict[str, Any] | None = None):
        self._lock = threading.Lock()
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
        logger.debug(f"Stored {key}")

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
        logger.debug(f"Deleted {key}")

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._data
