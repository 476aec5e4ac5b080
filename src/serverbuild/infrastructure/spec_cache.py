"""Time-bounded cache in front of a specification lookup."""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Any, Callable

from serverbuild.domain.value_objects import ComponentType

if TYPE_CHECKING:
    from serverbuild.contracts.lookup import SpecificationLookup

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


class SpecificationCache:
    """Caches found specifications for ``ttl`` seconds.

    Unknown uuids are not cached, so items added to the underlying catalog
    become visible on the next call. Callers that change existing catalog
    entries call ``invalidate``.
    """

    def __init__(
        self,
        lookup: SpecificationLookup,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._lookup = lookup
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[tuple[ComponentType, str], tuple[float, dict[str, Any]]] = {}
        self._hits = 0
        self._misses = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    def get_component_specs(
        self, component_type: ComponentType | str, uuid: str
    ) -> dict[str, Any] | None:
        try:
            key = (ComponentType(component_type), uuid)
        except ValueError:
            return None
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry[0] > now:
                self._hits += 1
                return dict(entry[1])
            self._misses += 1

        spec = self._lookup.get_component_specs(key[0], uuid)
        if spec is not None:
            with self._lock:
                self._entries[key] = (now + self._ttl, dict(spec))
        return spec

    def invalidate(
        self, component_type: ComponentType | str | None = None, uuid: str | None = None
    ) -> int:
        """Drop cached entries; all of them when called without arguments.

        Returns:
            Number of entries removed.
        """
        wanted_type = ComponentType(component_type) if component_type is not None else None
        with self._lock:
            doomed = [
                key
                for key in self._entries
                if (wanted_type is None or key[0] == wanted_type)
                and (uuid is None or key[1] == uuid)
            ]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.debug(f"Invalidated {len(doomed)} cached specification(s)")
        return len(doomed)

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "ttl": self._ttl,
            }
