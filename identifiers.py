import logging
import time
from typing import Callable, Iterable, Optional, Set

from data import JsonFileStore
from device import DeviceRecord

logger = logging.getLogger(__name__)


class IdentifierStore:
    """Durable set of known device identifiers.

    The static seed list is kept in memory only; the backing store holds the
    identifiers learned at runtime, each with a ``last_seen`` epoch timestamp
    used by the stale-entry reaper.
    """

    def __init__(self, store: JsonFileStore, clock: Callable[[], float] = time.time):
        self.store = store
        self.clock = clock
        self.seed: Set[str] = set()

    def load(self, seed: Iterable[str]) -> Set[str]:
        """Returns the seed list unioned with every durably stored identifier."""
        self.seed = {identifier for identifier in seed if identifier}
        try:
            self.store.reload()
            stored = self.store.list_keys()
        except Exception as e:  # pylint: disable=broad-except
            logger.error(f"Could not read known devices from {self.store.json_file}: {e}")
            stored = set()
        known = self.seed | stored
        logger.debug(f"Loaded {len(known)} known identifiers ({len(self.seed)} from the static list)")
        return known

    def add(self, identifier: str) -> None:
        if not identifier or self.store.get(identifier) is not None:
            return
        self.store.put(identifier, {"last_seen": self.clock()})
        logger.info(f"Remembered new device {identifier}")

    def remove_stale(self, current_ids: Set[str], grace_seconds: int) -> Set[str]:
        """Deletes stored identifiers absent from the roster for longer than the grace period.

        Identifiers present in the roster get their ``last_seen`` refreshed.
        Entries without a timestamp are stamped now and kept. Seed entries are
        never removed. Returns the removed identifiers.
        """
        now = self.clock()
        refreshed = {}
        removed = set()
        for identifier in sorted(self.store.list_keys()):
            entry = self.store.get(identifier) or {}
            last_seen = entry.get("last_seen") if isinstance(entry, dict) else None

            if identifier in current_ids or not isinstance(last_seen, (int, float)):
                refreshed[identifier] = {"last_seen": now}
                continue
            if identifier in self.seed:
                continue
            if now - last_seen > grace_seconds:
                removed.add(identifier)
                logger.info(f"Removed stale device {identifier} (last seen {int(now - last_seen)}s ago)")

        if refreshed or removed:
            self.store.update(refreshed, removed)
        return removed


def reap(identifier_store: IdentifierStore, roster: Iterable[DeviceRecord], grace_seconds: int) -> Optional[Set[str]]:
    """Best-effort removal of stale identifiers; errors are logged, never raised."""
    current_ids = {record.identifier for record in roster if record.identifier}
    try:
        return identifier_store.remove_stale(current_ids, grace_seconds)
    except Exception as e:  # pylint: disable=broad-except
        logger.error(f"Stale device cleanup failed: {e}")
        return None
