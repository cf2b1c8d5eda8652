"""ID and value generators (CUID, UUID strategies).

UUID providers are a fixed registry of named strategies selected once from
configuration (Settings.uuid_provider). Unknown names are rejected when the
settings load.
"""

import uuid
from collections.abc import Callable
from typing import Protocol

from cuid2 import cuid_wrapper

from attachments.domain.exceptions import ConfigurationException

cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2).

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


class UuidProvider(Protocol):
    """Strategy producing attachment identifiers."""

    name: str

    def generate(self) -> str:
        """Return a new, non-empty identifier."""
        ...


class CallableUuidProvider:
    """UuidProvider backed by a plain zero-argument callable."""

    def __init__(self, name: str, func: Callable[[], str]) -> None:
        self.name = name
        self._func = func

    def generate(self) -> str:
        return self._func()

    def __repr__(self) -> str:
        return f"CallableUuidProvider({self.name!r})"


UUID_PROVIDERS: dict[str, Callable[[], str]] = {
    "uuid4": lambda: str(uuid.uuid4()),
    "uuid1": lambda: str(uuid.uuid1()),
    "hex": lambda: uuid.uuid4().hex,
    "cuid": generate_cuid,
}


def get_uuid_provider(name: str | None) -> UuidProvider:
    """Return the registered provider for name.

    Raises:
        ConfigurationException: If name is empty or not registered.
    """
    if not name:
        raise ConfigurationException(
            "Missing UUID provider configuration for attachments",
            setting="uuid_provider",
        )
    key = name.strip().lower()
    func = UUID_PROVIDERS.get(key)
    if func is None:
        raise ConfigurationException(
            f"Unknown UUID provider: {name!r}",
            setting="uuid_provider",
        )
    return CallableUuidProvider(key, func)
