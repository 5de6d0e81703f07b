"""
RemoteValueStore interface for the devices the terminal controls.

The terminal never owns device state. It reads and writes values by address
(e.g. ``climate.0.heating.target``) through a store adapter, and reads value
capabilities (type, writability, bounds) from a metadata cache filled when
pages are loaded.

Two pieces live here:
1. RemoteValueStore - the async get/set interface adapters implement
2. InMemoryValueStore - dict-backed store for tests and demos

Failure contract:
- Adapters raise RemoteAccessError for any failed read or write
- The input subsystem catches it at its boundary, logs it and shows a short
  token on the display; it never propagates to the event source
- Reads are retried (``read_with_retries``); writes are not, because writing
  the same command twice to a device is not idempotent in general
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from .config import Config
from .logging_utils import log_debug, log_warning
from .schemas import DatapointMetadata, RemoteValue


class RemoteAccessError(Exception):
    """Raised by store adapters when a remote read or write fails."""

    def __init__(self, *, address: str, operation: str, reason: str) -> None:
        self.address = address
        self.operation = operation
        self.reason = reason
        super().__init__(f"Remote {operation} failed for {address}: {reason}")


class RemoteValueStore(ABC):
    """Abstract base class for remote value access.

    Both methods are async: real adapters talk to a broker or a home
    automation server and every call is a network round trip.
    """

    @abstractmethod
    async def get_value(self, address: str) -> Optional[RemoteValue]:
        """Return the current value, or ``None`` if the address has no value.

        Raises:
            RemoteAccessError: If the store cannot be reached
        """

    @abstractmethod
    async def set_value(self, address: str, value: Any) -> None:
        """Write ``value`` to ``address``.

        Raises:
            RemoteAccessError: If the write is rejected or the store is unreachable
        """


MetadataCache = Mapping[str, DatapointMetadata]
"""Read-only view of datapoint metadata keyed by address."""


class InMemoryValueStore(RemoteValueStore):
    """Dict-backed value store.

    ``fail_reads`` / ``fail_writes`` hold addresses that raise
    RemoteAccessError, which lets tests exercise the failure paths without a
    mock framework. ``writes`` records every successful write in order.
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None) -> None:
        self.values: Dict[str, RemoteValue] = {
            address: RemoteValue(val=value) for address, value in (values or {}).items()
        }
        self.writes: List[Tuple[str, Any]] = []
        self.reads: List[str] = []
        self.fail_reads: Set[str] = set()
        self.fail_writes: Set[str] = set()

    async def get_value(self, address: str) -> Optional[RemoteValue]:
        self.reads.append(address)
        if address in self.fail_reads:
            raise RemoteAccessError(address=address, operation="read", reason="store unavailable")
        return self.values.get(address)

    async def set_value(self, address: str, value: Any) -> None:
        if address in self.fail_writes:
            raise RemoteAccessError(address=address, operation="write", reason="write rejected")
        self.values[address] = RemoteValue(val=value)
        self.writes.append((address, value))

    def value_of(self, address: str) -> Any:
        """Return the raw stored value (``None`` when unset)."""

        stored = self.values.get(address)
        return stored.val if stored is not None else None


async def read_with_retries(
    store: RemoteValueStore,
    address: str,
    *,
    attempts: int = Config.REMOTE_READ_ATTEMPTS,
    wait_seconds: float = 0.0,
) -> Optional[RemoteValue]:
    """Read ``address`` retrying transient RemoteAccessErrors.

    Only RemoteAccessError triggers a retry; anything else is a programming
    error and propagates immediately. After the last attempt the final
    RemoteAccessError is re-raised to the caller.
    """

    attempt_number = 0
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(RemoteAccessError),
        stop=stop_after_attempt(max(1, attempts)),
        wait=wait_fixed(wait_seconds),
        reraise=True,
    ):
        with attempt:
            attempt_number += 1
            if attempt_number > 1:
                log_warning("Remote", f"Read retry {attempt_number}/{attempts} for {address}")
            value = await store.get_value(address)
            log_debug("Remote", f"Read {address}: {value.val if value else None!r}")
            return value

    raise RuntimeError("Remote read retry loop exited unexpectedly")


def build_metadata_cache(entries: Iterable[Tuple[str, Any]]) -> Dict[str, DatapointMetadata]:
    """Build a metadata cache from ``(address, raw_metadata)`` pairs.

    ``raw_metadata`` may be a DatapointMetadata or a dict in the value store's
    own shape (``{"write": true, "type": "number", "min": 5, ...}``).
    """

    cache: Dict[str, DatapointMetadata] = {}
    for address, raw in entries:
        if isinstance(raw, DatapointMetadata):
            cache[address] = raw
        else:
            cache[address] = DatapointMetadata.model_validate(raw)
    return cache
