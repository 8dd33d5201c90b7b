#!/usr/bin/env python3
"""
VOLAFFINITY RESOLVER - The Placement Judge
------------------------------------------
Decides where a new consumer of a volume claim has to run. A single-writer
volume that is already attached somewhere drags every new consumer onto the
same node, with the same tolerations as the pod that holds it.

The resolver only reads. It never caches, so every call reflects the
namespace as it is right now.

Author: VolAffinity Team
Date: 2026-10-19
"""

import logging
import threading
from typing import Any, Callable, List, Mapping, Optional, Union

from volaffinity.core.errors import InvalidInputError, LookupFailureError
from volaffinity.core.models import Consumer, ConsumerPhase, PlacementConstraint, VolumeClaim
from volaffinity.core.ownership import OwnershipPredicate
from volaffinity.store.base import ConsumerStore, check_cancelled
from volaffinity.store.convert import claim_from_manifest

logger = logging.getLogger("volaffinity.resolver")

ClaimInput = Union[VolumeClaim, Mapping[str, Any], None]


class AffinityResolver:
    """
    Computes the PlacementConstraint for a volume claim.

    Args:
        store: Anything offering list_consumers(namespace, cancel).
        is_internal: Predicate flagging pods created by our own data movers.
            Those are never used as the affinity source.
    """

    def __init__(self, store: ConsumerStore,
                 is_internal: Optional[Callable[[Consumer], bool]] = None):
        self.store = store
        self.is_internal = is_internal if is_internal is not None else OwnershipPredicate()

    def resolve(self, claim: ClaimInput,
                cancel: Optional[threading.Event] = None) -> PlacementConstraint:
        claim = self._validate(claim)

        # --- PHASE 1: ACCESS-MODE SHORT-CIRCUIT ---
        if claim.allows_multi_node:
            logger.debug(f"{claim.namespace}/{claim.name}: multi-node access "
                         f"{[m.value for m in claim.access_modes]}, no affinity")
            return PlacementConstraint.unrestricted()

        # --- PHASE 2: CONSUMER DISCOVERY ---
        users = [c for c in self._list_consumers(claim.namespace, cancel)
                 if c.uses_claim(claim.name)]

        # --- PHASE 3: SELF-REFERENCE EXCLUSION ---
        candidates = [c for c in users if not self.is_internal(c)]
        logger.debug(f"{claim.namespace}/{claim.name}: {len(users)} consumer(s), "
                     f"{len(users) - len(candidates)} internal, {len(candidates)} eligible")

        # --- PHASE 4: SELECTION ---
        chosen = select_consumer(candidates)
        if chosen is None:
            return PlacementConstraint.unrestricted()

        logger.debug(f"{claim.namespace}/{claim.name}: pinned to pod '{chosen.name}' "
                     f"({chosen.phase.value}) on node '{chosen.node_name}'")
        return PlacementConstraint.from_consumer(chosen)

    def _validate(self, claim: ClaimInput) -> VolumeClaim:
        if claim is None:
            raise InvalidInputError("No volume claim supplied")
        if isinstance(claim, Mapping):
            claim = claim_from_manifest(claim)
        if not isinstance(claim, VolumeClaim):
            raise InvalidInputError(f"Unsupported claim type: {type(claim).__name__}")
        if not claim.name or not claim.namespace:
            raise InvalidInputError("Volume claim must have a name and a namespace")
        return claim

    def _list_consumers(self, namespace: str,
                        cancel: Optional[threading.Event]) -> List[Consumer]:
        check_cancelled(cancel, namespace)
        try:
            consumers = self.store.list_consumers(namespace, cancel=cancel)
        except LookupFailureError:
            raise
        except Exception as e:
            logger.error(f"Consumer lookup in namespace '{namespace}' failed: {e}")
            raise LookupFailureError(f"Unable to list consumers in '{namespace}': {e}") from e
        # A cancelled read must not yield a result, even if the store finished
        check_cancelled(cancel, namespace)
        return consumers


def select_consumer(candidates: List[Consumer]) -> Optional[Consumer]:
    """
    Running pods hold the real attachment, so they outrank everything else.
    Ties inside a tier are broken by pod name to stay reproducible.
    """
    if not candidates:
        return None
    running = [c for c in candidates if c.phase == ConsumerPhase.RUNNING]
    if len(running) > 1:
        logger.warning(f"{len(running)} running pods share a single-writer claim: "
                       f"{sorted(c.name for c in running)}")
    tier = running or candidates
    return min(tier, key=lambda c: c.name)


def affinity_from_volume(store: ConsumerStore, claim: ClaimInput,
                         is_internal: Optional[Callable[[Consumer], bool]] = None,
                         cancel: Optional[threading.Event] = None) -> PlacementConstraint:
    """One-shot helper around AffinityResolver.resolve."""
    return AffinityResolver(store, is_internal=is_internal).resolve(claim, cancel=cancel)
