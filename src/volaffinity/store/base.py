#!/usr/bin/env python3
"""
VOLAFFINITY STORE INTERFACE
---------------------------
The resolver reads the cluster through exactly one capability: listing the
consumers of a namespace. Claim lookup is a separate capability that only
the CLI needs.

Author: VolAffinity Team
Date: 2026-10-19
"""

import threading
from typing import List, Optional, Protocol

from volaffinity.core.errors import LookupFailureError
from volaffinity.core.models import Consumer, VolumeClaim


class ConsumerStore(Protocol):
    def list_consumers(self, namespace: str,
                       cancel: Optional[threading.Event] = None) -> List[Consumer]:
        ...


class ClaimSource(Protocol):
    def get_claim(self, namespace: str, name: str) -> Optional[VolumeClaim]:
        ...


def check_cancelled(cancel: Optional[threading.Event], namespace: str):
    """Raises LookupFailureError if the caller has cancelled the read."""
    if cancel is not None and cancel.is_set():
        raise LookupFailureError(f"Consumer lookup in namespace '{namespace}' was cancelled")
