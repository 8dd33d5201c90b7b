#!/usr/bin/env python3
"""
VOLAFFINITY MANIFEST STORE - Offline Snapshots
----------------------------------------------
Serves consumers and claims out of YAML manifests: the output of
`kubectl get pods,pvc -o yaml`, hand-written fixtures, or a directory
of either. Files are re-read on every call so an edited snapshot is
picked up without restarting.

Author: VolAffinity Team
Date: 2026-10-19
"""

import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterator, List, Optional

from ruamel.yaml import YAML, YAMLError

from volaffinity.core.errors import LookupFailureError
from volaffinity.core.models import Consumer, VolumeClaim
from volaffinity.store.base import check_cancelled
from volaffinity.store.convert import claim_from_manifest, consumer_from_manifest

logger = logging.getLogger("volaffinity.store.manifest")

MANIFEST_SUFFIXES = (".yaml", ".yml")


class ManifestStore:
    """
    Read-only store backed by a file, a directory tree, or literal text.
    Only Pod and PersistentVolumeClaim documents are considered; `kind: List`
    wrappers are flattened.
    """

    def __init__(self, path: Optional[str] = None, text: Optional[str] = None,
                 default_namespace: str = "default"):
        if (path is None) == (text is None):
            raise ValueError("ManifestStore needs exactly one of 'path' or 'text'")
        self.path = Path(path).resolve() if path is not None else None
        self.text = text
        # Hand-written manifests often omit metadata.namespace
        self.default_namespace = default_namespace
        self.yaml = YAML(typ='safe')

    @classmethod
    def from_text(cls, text: str) -> "ManifestStore":
        return cls(text=text)

    def _files(self) -> List[Path]:
        if not self.path.exists():
            raise LookupFailureError(f"Manifest path '{self.path}' does not exist")
        if self.path.is_file():
            return [self.path]
        # Symlinks are skipped to avoid directory loops
        return sorted(
            f for f in self.path.rglob("*")
            if f.suffix.lower() in MANIFEST_SUFFIXES and f.is_file() and not f.is_symlink()
        )

    def _documents(self) -> Iterator[Any]:
        if self.text is not None:
            sources = [("<text>", self.text)]
        else:
            sources = []
            for f in self._files():
                try:
                    sources.append((str(f), f.read_text(encoding='utf-8-sig')))
                except (OSError, UnicodeDecodeError) as e:
                    raise LookupFailureError(f"Unable to read manifest '{f}': {e}") from e

        for origin, content in sources:
            try:
                docs = [d for d in self.yaml.load_all(content) if d is not None]
            except YAMLError as e:
                raise LookupFailureError(f"Malformed YAML in {origin}: {e}") from e

            for doc in docs:
                if not isinstance(doc, dict):
                    logger.debug(f"Skipping non-mapping document in {origin}")
                    continue
                if str(doc.get("kind") or "").endswith("List") and "items" in doc:
                    yield from (item for item in doc.get("items") or [] if isinstance(item, dict))
                else:
                    yield doc

    def _namespace_of(self, doc: dict) -> str:
        return (doc.get("metadata") or {}).get("namespace") or self.default_namespace

    def list_consumers(self, namespace: str,
                       cancel: Optional[threading.Event] = None) -> List[Consumer]:
        consumers = []
        for doc in self._documents():
            check_cancelled(cancel, namespace)
            if doc.get("kind") != "Pod" or self._namespace_of(doc) != namespace:
                continue
            consumers.append(replace(consumer_from_manifest(doc), namespace=namespace))
        return consumers

    def get_claim(self, namespace: str, name: str) -> Optional[VolumeClaim]:
        for doc in self._documents():
            if doc.get("kind") != "PersistentVolumeClaim" or self._namespace_of(doc) != namespace:
                continue
            if (doc.get("metadata") or {}).get("name") == name:
                return replace(claim_from_manifest(doc), namespace=namespace)
        return None
