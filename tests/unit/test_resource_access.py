"""Tests for the in-memory and dry-run resource access backends."""

import pytest

from kubestack.core.errors import ConflictError, PatchApplyError, ResourceNotFoundError
from kubestack.core.schema.document import ResourceRef
from kubestack.core.schema.patch import Patch, PatchOp
from kubestack.core.schema.resource_access import try_get
from kubestack.k8s.dry_run import DryRunResourceAccess
from kubestack.k8s.memory import InMemoryResourceAccess


def configmap(name, namespace="default", labels=None, data=None):
    metadata = {"name": name, "namespace": namespace}
    if labels is not None:
        metadata["labels"] = labels
    return {"apiVersion": "v1", "kind": "ConfigMap", "metadata": metadata, "data": data or {}}


class TestInMemoryResourceAccess:
    """Tests for InMemoryResourceAccess."""

    def test_create_and_get(self):
        access = InMemoryResourceAccess()
        access.create(configmap("a", data={"k": "v"}))

        assert access.get("ConfigMap", "default", "a")["data"] == {"k": "v"}

    def test_get_missing(self):
        access = InMemoryResourceAccess()

        with pytest.raises(ResourceNotFoundError) as exc_info:
            access.get("ConfigMap", "default", "missing")
        assert exc_info.value.ref == ResourceRef("ConfigMap", "default", "missing")

    def test_try_get(self):
        access = InMemoryResourceAccess([configmap("a")])

        assert try_get(access, "ConfigMap", "default", "missing") is None
        assert try_get(access, "ConfigMap", "default", "a")["metadata"]["name"] == "a"

    def test_create_existing_conflicts(self):
        access = InMemoryResourceAccess([configmap("a")])

        with pytest.raises(ConflictError):
            access.create(configmap("a"))

    def test_returned_documents_are_copies(self):
        access = InMemoryResourceAccess([configmap("a")])

        access.get("ConfigMap", "default", "a")["data"]["x"] = "y"

        assert access.get("ConfigMap", "default", "a")["data"] == {}

    def test_list_filters_kind_namespace_and_selector(self):
        access = InMemoryResourceAccess([
            configmap("a", labels={"stack": "web"}),
            configmap("b", namespace="other", labels={"stack": "web"}),
            configmap("c", labels={"stack": "db"}),
            {"apiVersion": "v1", "kind": "Secret",
             "metadata": {"name": "s", "labels": {"stack": "web"}}},
        ])

        all_web = access.list("ConfigMap", None, "stack=web")
        default_web = access.list("ConfigMap", "default", "stack=web")

        assert [d["metadata"]["name"] for d in all_web] == ["a", "b"]
        assert [d["metadata"]["name"] for d in default_web] == ["a"]
        assert len(access.list("ConfigMap")) == 3

    def test_patch(self):
        access = InMemoryResourceAccess([configmap("a", data={"k": "v"})])
        patch = Patch([PatchOp("replace", "/data/k", "w"), PatchOp("add", "/data/n", "1")])

        result = access.patch("ConfigMap", "default", "a", patch)

        assert result["data"] == {"k": "w", "n": "1"}
        assert access.get("ConfigMap", "default", "a")["data"] == {"k": "w", "n": "1"}

    def test_patch_invalid_path(self):
        access = InMemoryResourceAccess([configmap("a")])

        with pytest.raises(PatchApplyError):
            access.patch("ConfigMap", "default", "a", Patch([PatchOp("remove", "/nope")]))

    def test_patch_cannot_rename(self):
        access = InMemoryResourceAccess([configmap("a")])

        with pytest.raises(ConflictError):
            access.patch(
                "ConfigMap", "default", "a", Patch([PatchOp("replace", "/metadata/name", "b")])
            )

    def test_delete(self):
        access = InMemoryResourceAccess([configmap("a")])

        deleted = access.delete("ConfigMap", "default", "a")

        assert deleted["metadata"]["name"] == "a"
        with pytest.raises(ResourceNotFoundError):
            access.delete("ConfigMap", "default", "a")

    def test_delete_collection(self):
        access = InMemoryResourceAccess([
            configmap("a", labels={"stack": "web"}),
            configmap("b", labels={"stack": "db"}),
        ])

        deleted = access.delete_collection("ConfigMap", None, "stack=web")

        assert [d["metadata"]["name"] for d in deleted] == ["a"]
        assert list(access.resources) == [ResourceRef("ConfigMap", "default", "b")]

    def test_server_fields(self):
        access = InMemoryResourceAccess(server_fields=True)
        created = access.create(configmap("a"))
        patched = access.patch(
            "ConfigMap", "default", "a", Patch([PatchOp("add", "/data/k", "v")])
        )

        assert created["metadata"]["uid"] == patched["metadata"]["uid"]
        assert "creationTimestamp" in created["metadata"]
        assert int(patched["metadata"]["resourceVersion"]) > int(
            created["metadata"]["resourceVersion"]
        )

    def test_call_log(self):
        access = InMemoryResourceAccess([configmap("a")])
        access.get("ConfigMap", "default", "a")
        access.delete("ConfigMap", "default", "a")

        assert [name for name, _ in access.calls] == ["get", "delete"]
        assert access.mutating_calls() == [("delete", ResourceRef("ConfigMap", "default", "a"))]


class TestDryRunResourceAccess:
    """Tests for DryRunResourceAccess."""

    def test_reads_are_delegated(self):
        store = InMemoryResourceAccess([configmap("a")])
        access = DryRunResourceAccess(store)

        assert access.get("ConfigMap", "default", "a")["metadata"]["name"] == "a"
        assert len(access.list("ConfigMap")) == 1

    def test_writes_are_recorded_not_performed(self):
        store = InMemoryResourceAccess([configmap("a", data={"k": "v"})])
        access = DryRunResourceAccess(store)

        access.create(configmap("b"))
        patched = access.patch(
            "ConfigMap", "default", "a", Patch([PatchOp("replace", "/data/k", "w")])
        )
        access.delete("ConfigMap", "default", "a")

        assert patched["data"] == {"k": "w"}
        assert [name for name, _ in access.planned] == ["create", "patch", "delete"]
        assert store.mutating_calls() == []
        assert store.get("ConfigMap", "default", "a")["data"] == {"k": "v"}

    def test_delete_missing_raises_not_found(self):
        access = DryRunResourceAccess(InMemoryResourceAccess())

        with pytest.raises(ResourceNotFoundError):
            access.delete("ConfigMap", "default", "missing")

    def test_delete_collection(self):
        store = InMemoryResourceAccess([configmap("a", labels={"s": "x"})])
        access = DryRunResourceAccess(store)

        deleted = access.delete_collection("ConfigMap", None, "s=x")

        assert len(deleted) == 1
        assert access.planned == [("delete", ResourceRef("ConfigMap", "default", "a"))]
        assert len(store.resources) == 1
