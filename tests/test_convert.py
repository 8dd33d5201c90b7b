import pytest

from volaffinity.core.errors import InvalidInputError
from volaffinity.core.models import AccessMode, ConsumerPhase, PlacementConstraint, Toleration
from volaffinity.core.ownership import OwnershipPredicate, mark_owned
from volaffinity.store.convert import claim_from_manifest, consumer_from_manifest


def test_status_access_modes_take_precedence(make_pvc):
    pvc = make_pvc("data", "ReadWriteOnce")
    pvc["status"]["accessModes"] = ["ReadWriteMany"]
    assert claim_from_manifest(pvc).access_modes == (AccessMode.READ_WRITE_MANY,)


def test_spec_access_modes_used_without_status(make_pvc):
    claim = claim_from_manifest(make_pvc("data", "ReadOnlyMany", with_status=False))
    assert claim.access_modes == (AccessMode.READ_ONLY_MANY,)
    assert claim.allows_multi_node


def test_empty_status_falls_back_to_spec(make_pvc):
    pvc = make_pvc("data", "ReadWriteOnce")
    pvc["status"] = {"phase": "Pending"}
    assert claim_from_manifest(pvc).access_modes == (AccessMode.READ_WRITE_ONCE,)


@pytest.mark.parametrize("manifest", [
    {},
    None,
    {"kind": "Pod", "metadata": {"name": "x", "namespace": "y"}},
    {"kind": "PersistentVolumeClaim", "metadata": {"name": "x"}, "spec": {"accessModes": ["ReadWriteSometimes"]}},
])
def test_bad_claim_manifests(manifest):
    with pytest.raises(InvalidInputError):
        claim_from_manifest(manifest)


def test_consumer_from_pod(make_pod):
    consumer = consumer_from_manifest(make_pod("app", ["a", "b"], "Running"))
    assert consumer.name == "app"
    assert consumer.node_name == "app-node"
    assert consumer.phase == ConsumerPhase.RUNNING
    assert consumer.claim_names == frozenset({"a", "b"})
    assert consumer.uses_claim("a") and not consumer.uses_claim("c")
    assert consumer.tolerations == (Toleration(key="app-key", value="thevalue", effect="NoExecute"),)


@pytest.mark.parametrize("status, expected", [
    ({"phase": "Failed"}, ConsumerPhase.FAILED),
    ({"phase": "Evicted"}, ConsumerPhase.UNKNOWN),
    ({}, ConsumerPhase.UNKNOWN),
    (None, ConsumerPhase.UNKNOWN),
])
def test_phase_mapping(make_pod, status, expected):
    pod = make_pod("app", [], "Running")
    pod["status"] = status
    assert consumer_from_manifest(pod).phase == expected


def test_ephemeral_volumes_reference_generated_claim():
    pod = {
        "kind": "Pod",
        "metadata": {"name": "job-x", "namespace": "ns"},
        "spec": {
            "volumes": [
                {"name": "scratch", "ephemeral": {"volumeClaimTemplate": {"spec": {}}}},
                {"name": "config", "configMap": {"name": "cfg"}},
            ],
        },
    }
    consumer = consumer_from_manifest(pod)
    assert consumer.claim_names == frozenset({"job-x-scratch"})
    assert consumer.node_name == ""
    assert consumer.tolerations == ()


def test_toleration_manifest_omits_unset_fields():
    raw = {"operator": "Exists", "effect": "NoExecute", "tolerationSeconds": 30}
    assert Toleration.from_manifest(raw).to_manifest() == raw


def test_constraint_manifest():
    constraint = PlacementConstraint(node_name="n1", tolerations=(Toleration(key="k"),), source="p")
    assert constraint.to_manifest() == {"nodeName": "n1", "tolerations": [{"key": "k"}], "source": "p"}
    assert PlacementConstraint.unrestricted().to_manifest() == {"nodeName": "", "tolerations": [], "source": None}


def test_ownership_marking(make_pod):
    pod = make_pod("mover", [], "Running")
    pod["metadata"]["labels"] = None
    mark_owned(pod)
    assert pod["metadata"]["labels"] == {"app.kubernetes.io/created-by": "volsync"}

    predicate = OwnershipPredicate()
    assert predicate(consumer_from_manifest(pod))
    assert not OwnershipPredicate("example.com/owner", "mover")(consumer_from_manifest(pod))

    custom = OwnershipPredicate("example.com/owner", "mover")
    custom.mark(pod)
    assert custom(consumer_from_manifest(pod))


def test_ownership_requires_label_key():
    with pytest.raises(ValueError):
        OwnershipPredicate("", "x")


def test_annotated_pod_converts(make_pod):
    pod = make_pod("app", ["data"], "Running")
    pod["metadata"]["annotations"] = {"kubectl.kubernetes.io/default-container": "name"}
    consumer = consumer_from_manifest(pod)
    assert consumer.name == "app"
    assert consumer.uses_claim("data")
