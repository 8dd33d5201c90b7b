import pytest

from volaffinity.core.ownership import mark_owned
from volaffinity.store.convert import claim_from_manifest, consumer_from_manifest
from volaffinity.store.memory import InMemoryConsumerStore

NAMESPACE = "affinity-test"


def build_pvc(name, mode, namespace=NAMESPACE, with_status=True):
    pvc = {
        "apiVersion": "v1",
        "kind": "PersistentVolumeClaim",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {
            "accessModes": [mode],
            "resources": {"requests": {"storage": "1Gi"}},
        },
    }
    if with_status:
        pvc["status"] = {"accessModes": [mode]}
    return pvc


def build_pod(name, claims, phase, internal=False, namespace=NAMESPACE, node=None):
    pod = {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {
            "nodeName": f"{name}-node" if node is None else node,
            "tolerations": [
                {"key": f"{name}-key", "value": "thevalue", "effect": "NoExecute"},
            ],
            "containers": [{"name": "name", "image": "image"}],
            "volumes": [
                {"name": f"{c}-vol", "persistentVolumeClaim": {"claimName": c}}
                for c in claims
            ],
        },
        "status": {"phase": phase},
    }
    if internal:
        mark_owned(pod)
    return pod


@pytest.fixture
def make_pvc():
    return build_pvc


@pytest.fixture
def make_pod():
    return build_pod


@pytest.fixture
def pvc_manifests():
    return [
        build_pvc("rwx", "ReadWriteMany"),       # Used only by the running pod
        build_pvc("rwo-both", "ReadWriteOnce"),  # Used by running and pending pods
        build_pvc("rwo-pending", "ReadWriteOnce"),
        build_pvc("rwo-none", "ReadWriteOnce"),  # Not used by any pod
        build_pvc("vs-only", "ReadWriteOnce"),   # Only used by an internal mover pod
    ]


@pytest.fixture
def pod_manifests():
    return [
        build_pod("running", ["rwx", "rwo-both"], "Running"),
        build_pod("pending", ["rwo-both", "rwo-pending"], "Pending"),
        build_pod("vs", ["rwo-both", "vs-only"], "Running", internal=True),
    ]


@pytest.fixture
def claims(pvc_manifests):
    return {p["metadata"]["name"]: claim_from_manifest(p) for p in pvc_manifests}


@pytest.fixture
def store(pvc_manifests, pod_manifests):
    mem = InMemoryConsumerStore()
    for pvc in pvc_manifests:
        mem.add_claim(claim_from_manifest(pvc))
    for pod in pod_manifests:
        mem.add_consumer(consumer_from_manifest(pod))
    return mem


@pytest.fixture
def manifest_dir(tmp_path, pvc_manifests, pod_manifests):
    """Writes the fixture set as a kubectl-style List plus a multi-doc file."""
    from ruamel.yaml import YAML

    yaml = YAML()
    snapshot = tmp_path / "snapshot"
    snapshot.mkdir()
    with open(snapshot / "pods.yaml", "w") as f:
        yaml.dump({"apiVersion": "v1", "kind": "List", "items": pod_manifests}, f)
    with open(snapshot / "claims.yml", "w") as f:
        yaml.dump_all(pvc_manifests, f)
    return snapshot
