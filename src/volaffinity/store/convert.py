#!/usr/bin/env python3
"""
VOLAFFINITY CONVERTER - Manifest to Model
-----------------------------------------
Turns Pod and PersistentVolumeClaim manifests (plain dicts, ruamel
CommentedMaps, or serialized kubernetes client objects) into the
read-only models the resolver works on.

Author: VolAffinity Team
Date: 2026-10-19
"""

from typing import Any, FrozenSet, List, Mapping

from volaffinity.core.errors import InvalidInputError
from volaffinity.core.models import (
    Consumer,
    ConsumerPhase,
    Toleration,
    VolumeClaim,
)


def _section(obj: Mapping, key: str) -> Mapping:
    # The API server omits empty sections, and serialized client objects use None
    value = obj.get(key)
    return value if isinstance(value, Mapping) else {}


def claim_names_for_pod(pod_name: str, volumes: List[Mapping]) -> FrozenSet[str]:
    """
    Collects every claim a pod mounts. Generic ephemeral volumes count too:
    their claim is named '<pod>-<volume>' by the ephemeral volume controller.
    """
    names = set()
    for volume in volumes or []:
        if not isinstance(volume, Mapping):
            continue
        pvc_source = _section(volume, "persistentVolumeClaim")
        if pvc_source.get("claimName"):
            names.add(pvc_source["claimName"])
        elif volume.get("ephemeral") and volume.get("name"):
            names.add(f"{pod_name}-{volume['name']}")
    return frozenset(names)


def claim_from_manifest(manifest: Mapping[str, Any]) -> VolumeClaim:
    """
    Builds a VolumeClaim. Status access modes win; the claim's own spec is only consulted
    when the claim has not reported any (e.g. it is still Pending).
    """
    if not isinstance(manifest, Mapping) or not manifest:
        raise InvalidInputError("Claim manifest is empty")

    kind = manifest.get("kind")
    if kind and kind != "PersistentVolumeClaim":
        raise InvalidInputError(f"Expected a PersistentVolumeClaim, got '{kind}'")

    metadata = _section(manifest, "metadata")
    modes = _section(manifest, "status").get("accessModes") or \
        _section(manifest, "spec").get("accessModes")

    return VolumeClaim(
        namespace=metadata.get("namespace") or "",
        name=metadata.get("name") or "",
        access_modes=tuple(modes or ()),
        uid=metadata.get("uid"),
    )


def consumer_from_manifest(manifest: Mapping[str, Any]) -> Consumer:
    """Builds a Consumer snapshot from a Pod manifest."""
    metadata = _section(manifest, "metadata")
    spec = _section(manifest, "spec")
    status = _section(manifest, "status")
    name = metadata.get("name") or ""

    tolerations = tuple(
        Toleration.from_manifest(t) for t in (spec.get("tolerations") or [])
        if isinstance(t, Mapping)
    )

    return Consumer(
        namespace=metadata.get("namespace") or "",
        name=name,
        node_name=spec.get("nodeName") or "",
        phase=ConsumerPhase.parse(status.get("phase")),
        tolerations=tolerations,
        claim_names=claim_names_for_pod(name, spec.get("volumes")),
        labels=dict(metadata.get("labels") or {}),
    )
