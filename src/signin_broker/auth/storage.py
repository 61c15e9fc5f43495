"""
Typed access to the locally persisted identity fields.

The key-value store itself is a collaborator; InMemoryKeyValueStore is the
bundled implementation for tests and shells without durable storage.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ..config import BrokerConfig, config as default_config
from .models import StoredIdentity

if TYPE_CHECKING:
    from . import KeyValueStore

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore:
    """Process-local string store."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class IdentityStore:
    """Authorization key, email and display name on top of a key-value store.

    Assigning None to a field removes it from the underlying store.
    """

    def __init__(self, store: KeyValueStore, config: Optional[BrokerConfig] = None) -> None:
        self.store = store
        self.config = config or default_config

    def _write(self, key: str, value: Optional[str]) -> None:
        if value is None:
            self.store.remove(key)
        else:
            self.store.set(key, value)

    @property
    def authorization_key(self) -> Optional[str]:
        """Stable provider user id, used later for credential-state checks"""
        return self.store.get(self.config.authorization_key_name)

    @authorization_key.setter
    def authorization_key(self, value: Optional[str]) -> None:
        self._write(self.config.authorization_key_name, value)

    def remove_authorization_key(self) -> None:
        logger.debug("Removing stored authorization key")
        self.store.remove(self.config.authorization_key_name)

    @property
    def email(self) -> Optional[str]:
        return self.store.get(self.config.email_key_name)

    @email.setter
    def email(self, value: Optional[str]) -> None:
        self._write(self.config.email_key_name, value)

    @property
    def display_name(self) -> Optional[str]:
        return self.store.get(self.config.display_name_key_name)

    @display_name.setter
    def display_name(self, value: Optional[str]) -> None:
        self._write(self.config.display_name_key_name, value)

    def snapshot(self) -> StoredIdentity:
        return StoredIdentity(
            authorization_key=self.authorization_key,
            email=self.email,
            display_name=self.display_name,
        )

    def clear(self) -> None:
        for key in (
            self.config.authorization_key_name,
            self.config.email_key_name,
            self.config.display_name_key_name,
        ):
            self.store.remove(key)
