#!/usr/bin/env python3
"""
VOLAFFINITY CORE MODELS
-----------------------
Defines the fundamental data structures used across the VolAffinity resolver.
These models are read-only snapshots of cluster objects plus the one value
the resolver produces.

Author: VolAffinity Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, FrozenSet, Dict, Any

from volaffinity.core.errors import InvalidInputError


class AccessMode(str, Enum):
    """PersistentVolume access modes as reported by the API server."""
    READ_WRITE_ONCE = "ReadWriteOnce"
    READ_ONLY_MANY = "ReadOnlyMany"
    READ_WRITE_MANY = "ReadWriteMany"
    READ_WRITE_ONCE_POD = "ReadWriteOncePod"

    @property
    def allows_multi_node(self) -> bool:
        return self in (AccessMode.READ_ONLY_MANY, AccessMode.READ_WRITE_MANY)


class ConsumerPhase(str, Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ConsumerPhase":
        """Maps a raw pod phase to the enum; anything unrecognised is Unknown."""
        for phase in cls:
            if phase.value == value:
                return phase
        return cls.UNKNOWN


@dataclass(frozen=True)
class Toleration:
    """
    A single pod toleration. Kept field-for-field so that it can be handed
    back to the scheduler exactly as the consumer declared it.
    """
    key: Optional[str] = None
    operator: Optional[str] = None
    value: Optional[str] = None
    effect: Optional[str] = None
    toleration_seconds: Optional[int] = None

    @classmethod
    def from_manifest(cls, raw: Dict[str, Any]) -> "Toleration":
        return cls(
            key=raw.get("key"),
            operator=raw.get("operator"),
            value=raw.get("value"),
            effect=raw.get("effect"),
            toleration_seconds=raw.get("tolerationSeconds"),
        )

    def to_manifest(self) -> Dict[str, Any]:
        """Renders the toleration in Kubernetes camelCase, omitting unset fields."""
        out = {}
        for name, value in (("key", self.key), ("operator", self.operator),
                            ("value", self.value), ("effect", self.effect),
                            ("tolerationSeconds", self.toleration_seconds)):
            if value is not None:
                out[name] = value
        return out


@dataclass(frozen=True)
class VolumeClaim:
    """
    Identifies a storage request (a PersistentVolumeClaim).

    access_modes holds the status modes when the claim is bound, otherwise
    the modes requested in the claim spec.
    """
    namespace: str
    name: str
    access_modes: Tuple[AccessMode, ...] = ()
    uid: Optional[str] = None

    def __post_init__(self):
        # Plain strings such as "ReadWriteMany" are accepted and normalised
        modes = []
        for mode in self.access_modes:
            try:
                modes.append(AccessMode(mode))
            except ValueError:
                raise InvalidInputError(f"Unknown access mode '{mode}'")
        object.__setattr__(self, "access_modes", tuple(modes))

    @property
    def allows_multi_node(self) -> bool:
        return any(mode.allows_multi_node for mode in self.access_modes)


@dataclass(frozen=True)
class Consumer:
    """
    A workload unit (Pod) that may mount one or more volume claims.
    """
    namespace: str
    name: str
    node_name: str = ""                  # Empty while unscheduled
    phase: ConsumerPhase = ConsumerPhase.UNKNOWN
    tolerations: Tuple[Toleration, ...] = ()
    claim_names: FrozenSet[str] = frozenset()
    labels: Dict[str, str] = field(default_factory=dict, hash=False, compare=False)

    def uses_claim(self, claim_name: str) -> bool:
        return claim_name in self.claim_names


@dataclass(frozen=True)
class PlacementConstraint:
    """
    The resolver's answer: either unrestricted (no node, no tolerations) or
    pinned to the node and tolerations of exactly one existing consumer.
    """
    node_name: str = ""
    tolerations: Tuple[Toleration, ...] = ()
    source: Optional[str] = None         # Name of the consumer it was copied from

    @classmethod
    def unrestricted(cls) -> "PlacementConstraint":
        return cls()

    @classmethod
    def from_consumer(cls, consumer: Consumer) -> "PlacementConstraint":
        return cls(
            node_name=consumer.node_name,
            tolerations=tuple(consumer.tolerations),
            source=consumer.name,
        )

    @property
    def is_pinned(self) -> bool:
        return self.source is not None

    def to_manifest(self) -> Dict[str, Any]:
        return {
            "nodeName": self.node_name,
            "tolerations": [t.to_manifest() for t in self.tolerations],
            "source": self.source,
        }
