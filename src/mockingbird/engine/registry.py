"""
Mockingbird Endpoint Registry

In-memory collection of endpoint definitions keyed by identity
(`"{path_pattern}-{method}"`). Insertion order is significant: the dispatcher
takes the first matching definition.

Writers serialize on a lock and publish a new immutable tuple of entries;
readers take a snapshot (one attribute read) and scan it without locking, so
a scan never observes a half-applied upsert or delete.
"""

import logging
import threading
from dataclasses import replace
from typing import List, Iterable, Optional, Tuple

from ..models import EndpointDefinition, utc_now


logger = logging.getLogger("mockingbird.registry")


class EndpointRegistry:
    """
    Process-lifetime store of endpoint definitions.

    Example:
        registry = EndpointRegistry()
        registry.upsert(EndpointDefinition.from_dict({
            'endpointId': '/users/:id',
            'responseTemplate': '{"id": "{{path.id}}"}'
        }))
        for endpoint in registry.snapshot():
            print(endpoint.identity)
    """

    def __init__(self, endpoints: Optional[Iterable[EndpointDefinition]] = None):
        self._lock = threading.Lock()
        self._entries: Tuple[EndpointDefinition, ...] = ()
        for endpoint in endpoints or []:
            self.upsert(endpoint)

    def snapshot(self) -> Tuple[EndpointDefinition, ...]:
        """Current entries in registry order."""
        return self._entries

    def identities(self) -> List[str]:
        return [endpoint.identity for endpoint in self._entries]

    def get(self, identity: str) -> Optional[EndpointDefinition]:
        for endpoint in self._entries:
            if endpoint.identity == identity:
                return endpoint
        return None

    def upsert(self, endpoint: EndpointDefinition) -> Tuple[EndpointDefinition, bool]:
        """
        Insert or replace a definition.

        A definition whose identity is already registered replaces the
        existing entry in place; otherwise it is appended.

        Args:
            endpoint: Definition to store

        Returns:
            Tuple of (stored definition, created flag)
        """
        now = utc_now()
        with self._lock:
            entries = list(self._entries)
            for index, existing in enumerate(entries):
                if existing.identity == endpoint.identity:
                    stored = replace(
                        endpoint,
                        scenarios=list(endpoint.scenarios),
                        created_at=existing.created_at or endpoint.created_at or now,
                        updated_at=now
                    )
                    entries[index] = stored
                    self._entries = tuple(entries)
                    logger.info(f"Updated endpoint {stored.identity}")
                    return stored, False

            stored = replace(
                endpoint,
                scenarios=list(endpoint.scenarios),
                created_at=endpoint.created_at or now,
                updated_at=now
            )
            entries.append(stored)
            self._entries = tuple(entries)

        logger.info(f"Registered endpoint {stored.identity}")
        return stored, True

    def delete(self, identity: str) -> bool:
        """
        Remove a definition.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            entries = tuple(e for e in self._entries if e.identity != identity)
            removed = len(entries) != len(self._entries)
            self._entries = entries

        if removed:
            logger.info(f"Deleted endpoint {identity}")
        return removed

    def clear(self) -> int:
        """Remove all definitions and return how many were removed."""
        with self._lock:
            count = len(self._entries)
            self._entries = ()
        logger.info(f"Cleared {count} endpoints")
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identity: object) -> bool:
        return any(endpoint.identity == identity for endpoint in self._entries)

    def __iter__(self):
        return iter(self._entries)
