#!/usr/bin/env python3
"""
VOLAFFINITY OWNERSHIP - Internal Pod Detection
----------------------------------------------
Data-mover pods created by our own machinery are tagged with a label.
The resolver must not follow those pods, so it asks this predicate
about every candidate.

Author: VolAffinity Team
Date: 2026-10-19
"""

from typing import Dict, Any

from volaffinity.core.models import Consumer

DEFAULT_OWNER_LABEL = "app.kubernetes.io/created-by"
DEFAULT_OWNER_VALUE = "volsync"


class OwnershipPredicate:
    """
    Callable predicate: True when a consumer carries the ownership label.
    """

    def __init__(self, label_key: str = DEFAULT_OWNER_LABEL,
                 label_value: str = DEFAULT_OWNER_VALUE):
        if not label_key:
            raise ValueError("Ownership label key must not be empty")
        self.label_key = label_key
        self.label_value = label_value

    def __call__(self, consumer: Consumer) -> bool:
        return consumer.labels.get(self.label_key) == self.label_value

    def mark(self, manifest: Dict[str, Any]) -> Dict[str, Any]:
        """
        Tags a Pod manifest as owned by our machinery. Creates the
        metadata/labels maps when they are missing.
        """
        metadata = manifest.setdefault("metadata", {})
        labels = metadata.get("labels")
        if labels is None:
            labels = metadata["labels"] = {}
        labels[self.label_key] = self.label_value
        return manifest

    def __repr__(self) -> str:
        return f"OwnershipPredicate({self.label_key}={self.label_value})"


def mark_owned(manifest: Dict[str, Any]) -> Dict[str, Any]:
    """Tags a Pod manifest using the default ownership convention."""
    return OwnershipPredicate().mark(manifest)
