#!/usr/bin/env python3
"""
VOLAFFINITY IN-MEMORY STORE
---------------------------
A dictionary-backed store. Used by the test-suite and by callers that
already hold a snapshot of the namespace.

Author: VolAffinity Team
Date: 2026-10-19
"""

import threading
from typing import Dict, List, Optional, Tuple

from volaffinity.core.models import Consumer, VolumeClaim
from volaffinity.store.base import check_cancelled


class InMemoryConsumerStore:
    """
    Holds consumers and claims keyed by (namespace, name). Re-adding an
    object under the same key replaces it, like an update on the API server.
    """

    def __init__(self):
        self._consumers: Dict[Tuple[str, str], Consumer] = {}
        self._claims: Dict[Tuple[str, str], VolumeClaim] = {}
        self._failure: Optional[Exception] = None
        self.list_calls = 0

    def add_consumer(self, consumer: Consumer) -> Consumer:
        self._consumers[(consumer.namespace, consumer.name)] = consumer
        return consumer

    def remove_consumer(self, namespace: str, name: str):
        self._consumers.pop((namespace, name), None)

    def add_claim(self, claim: VolumeClaim) -> VolumeClaim:
        self._claims[(claim.namespace, claim.name)] = claim
        return claim

    def fail_with(self, error: Optional[Exception]):
        """Makes every following read raise `error` (None clears it)."""
        self._failure = error

    def list_consumers(self, namespace: str,
                       cancel: Optional[threading.Event] = None) -> List[Consumer]:
        self.list_calls += 1
        check_cancelled(cancel, namespace)
        if self._failure is not None:
            raise self._failure
        return [c for (ns, _), c in self._consumers.items() if ns == namespace]

    def get_claim(self, namespace: str, name: str) -> Optional[VolumeClaim]:
        return self._claims.get((namespace, name))
