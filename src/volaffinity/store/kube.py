#!/usr/bin/env python3
"""
VOLAFFINITY KUBE STORE - Live Cluster Reads
-------------------------------------------
Lists pods straight from the API server with the official kubernetes
client. Reads are paginated so a cancellation can interrupt a large
namespace between pages.

Author: VolAffinity Team
Date: 2026-10-19
"""

import logging
import threading
from typing import Any, List, Optional

import kubernetes
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from volaffinity.core.errors import LookupFailureError
from volaffinity.core.models import Consumer, VolumeClaim
from volaffinity.store.base import check_cancelled
from volaffinity.store.convert import claim_from_manifest, consumer_from_manifest

logger = logging.getLogger("volaffinity.store.kube")

PAGE_SIZE = 500


def load_client_config(context: Optional[str] = None):
    """In-cluster service account first, then the local kubeconfig."""
    if context is None:
        try:
            config.load_incluster_config()
            return
        except kubernetes.config.ConfigException:
            pass
    try:
        config.load_kube_config(context=context)
    except (kubernetes.config.ConfigException, OSError) as e:
        raise LookupFailureError(f"Unable to load Kubernetes configuration: {e}") from e


class KubeConsumerStore:
    """
    Store backed by CoreV1Api.

    Args:
        core_api: Pre-built CoreV1Api; when omitted the client configuration
            is loaded and a new one is created.
        request_timeout: Seconds allowed per API request.
        context: kubeconfig context to use instead of the current one.
    """

    def __init__(self, core_api: Optional[client.CoreV1Api] = None,
                 api_client: Optional[client.ApiClient] = None,
                 request_timeout: Optional[float] = 30.0,
                 context: Optional[str] = None):
        if core_api is None:
            load_client_config(context)
            api_client = api_client or client.ApiClient()
            core_api = client.CoreV1Api(api_client)
        self.core_api = core_api
        # Only used to serialize models back into manifest form
        self.api_client = api_client or client.ApiClient()
        self.request_timeout = request_timeout

    def _to_manifest(self, obj: Any) -> dict:
        return self.api_client.sanitize_for_serialization(obj)

    def list_consumers(self, namespace: str,
                       cancel: Optional[threading.Event] = None) -> List[Consumer]:
        consumers = []
        token = None
        while True:
            check_cancelled(cancel, namespace)
            kwargs = {"limit": PAGE_SIZE, "_request_timeout": self.request_timeout}
            if token:
                kwargs["_continue"] = token
            try:
                page = self.core_api.list_namespaced_pod(namespace, **kwargs)
            except ApiException as e:
                raise LookupFailureError(
                    f"Listing pods in '{namespace}' failed: {e.status} {e.reason}") from e
            except (HTTPError, OSError) as e:
                raise LookupFailureError(f"Listing pods in '{namespace}' failed: {e}") from e

            consumers.extend(consumer_from_manifest(self._to_manifest(pod)) for pod in page.items or [])
            token = page.metadata._continue if page.metadata else None
            if not token:
                break

        logger.debug(f"Fetched {len(consumers)} pod(s) from namespace '{namespace}'")
        return consumers

    def get_claim(self, namespace: str, name: str) -> Optional[VolumeClaim]:
        try:
            pvc = self.core_api.read_namespaced_persistent_volume_claim(
                name, namespace, _request_timeout=self.request_timeout)
        except ApiException as e:
            if e.status == 404:
                return None
            raise LookupFailureError(
                f"Reading claim '{namespace}/{name}' failed: {e.status} {e.reason}") from e
        except (HTTPError, OSError) as e:
            raise LookupFailureError(f"Reading claim '{namespace}/{name}' failed: {e}") from e
        manifest = self._to_manifest(pvc)
        manifest.setdefault("kind", "PersistentVolumeClaim")
        return claim_from_manifest(manifest)
