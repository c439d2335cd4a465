"""Tests for the structural diff computer."""

import copy

import pytest

from kubestack.core.differ import diff, documents_equal, scalars_equal
from kubestack.core.schema.change import ChangeKind, ChangeRecord

SERVICE = {
    "apiVersion": "v1",
    "kind": "Service",
    "metadata": {
        "name": "web",
        "namespace": "default",
        "labels": {"app": "web", "a/b": "x"},
    },
    "spec": {
        "selector": {"app": "web"},
        "ports": [{"name": "http", "port": 80, "targetPort": 8080}],
    },
}


class TestReflexivity:
    """Tests that equal documents produce no changes."""

    @pytest.mark.parametrize("document", [
        SERVICE,
        {},
        [],
        None,
        0,
        "text",
        [1, [2, [3, {"a": None}]]],
    ])
    def test_diff_with_itself_is_empty(self, document):
        assert diff(document, copy.deepcopy(document)) == []

    def test_key_order_irrelevant(self):
        a = {"x": 1, "y": {"p": 1, "q": 2}}
        b = {"y": {"q": 2, "p": 1}, "x": 1}
        assert diff(a, b) == []


class TestMappings:
    """Tests for mapping comparison."""

    def test_added_key(self):
        records = diff({"a": 1}, {"a": 1, "b": 2})
        assert records == [ChangeRecord(ChangeKind.ADD, ("b",), new_value=2)]

    def test_removed_key(self):
        records = diff({"a": 1, "b": 2}, {"a": 1})
        assert records == [ChangeRecord(ChangeKind.REMOVE, ("b",), old_value=2)]

    def test_replaced_value(self):
        records = diff({"a": 1}, {"a": 2})
        assert records == [ChangeRecord(ChangeKind.REPLACE, ("a",), old_value=1, new_value=2)]

    def test_null_is_a_replace_not_a_remove(self):
        records = diff({"a": 1}, {"a": None})
        assert records == [ChangeRecord(ChangeKind.REPLACE, ("a",), old_value=1, new_value=None)]

    def test_null_to_value(self):
        records = diff({"a": None}, {"a": "x"})
        assert [r.kind for r in records] == [ChangeKind.REPLACE]

    def test_nested_recursion(self):
        to = {"spec": {"template": {"replicas": 1, "keep": True}}}
        from_ = {"spec": {"template": {"replicas": 3, "keep": True}}}
        records = diff(to, from_)
        assert records == [
            ChangeRecord(ChangeKind.REPLACE, ("spec", "template", "replicas"), 1, 3)
        ]

    def test_order_removed_common_added(self):
        """Test removals first, then common keys, then additions, each sorted."""
        to = {"z": 1, "m": 1, "b": 1, "k": 1}
        from_ = {"m": 2, "a": 1, "k": 1, "c": 1}
        records = diff(to, from_)
        assert [(r.kind, r.path) for r in records] == [
            (ChangeKind.REMOVE, ("b",)),
            (ChangeKind.REMOVE, ("z",)),
            (ChangeKind.REPLACE, ("m",)),
            (ChangeKind.ADD, ("a",)),
            (ChangeKind.ADD, ("c",)),
        ]

    def test_depth_first(self):
        """Test that nested changes of a key come before later keys."""
        to = {"a": {"x": 1, "y": 1}, "b": 1}
        from_ = {"a": {"x": 2, "y": 2}, "b": 2}
        paths = [r.path for r in diff(to, from_)]
        assert paths == [("a", "x"), ("a", "y"), ("b",)]


class TestSequences:
    """Tests for positional sequence comparison."""

    def test_service_port_example(self):
        """Test the port change on a Service spec."""
        live = copy.deepcopy(SERVICE)
        live["spec"]["ports"][0]["port"] = 8080
        records = diff(live, SERVICE)
        assert records == [
            ChangeRecord(ChangeKind.REPLACE, ("spec", "ports", 0, "port"), 8080, 80)
        ]

    def test_appended_elements(self):
        records = diff({"l": [1]}, {"l": [1, 2, 3]})
        assert records == [
            ChangeRecord(ChangeKind.ADD, ("l", 1), new_value=2),
            ChangeRecord(ChangeKind.ADD, ("l", 2), new_value=3),
        ]

    def test_trailing_removals_highest_index_first(self):
        records = diff({"l": [1, 2, 3]}, {"l": [1]})
        assert records == [
            ChangeRecord(ChangeKind.REMOVE, ("l", 2), old_value=3),
            ChangeRecord(ChangeKind.REMOVE, ("l", 1), old_value=2),
        ]

    def test_reorder_is_per_index_replace(self):
        """Test that no content matching is attempted."""
        records = diff(["a", "b", "c"], ["c", "a", "b"])
        assert [(r.kind, r.path, r.new_value) for r in records] == [
            (ChangeKind.REPLACE, (0,), "c"),
            (ChangeKind.REPLACE, (1,), "a"),
            (ChangeKind.REPLACE, (2,), "b"),
        ]

    def test_insert_at_front_shifts_everything(self):
        records = diff([1, 2], [0, 1, 2])
        assert [(r.kind, r.path) for r in records] == [
            (ChangeKind.REPLACE, (0,)),
            (ChangeKind.REPLACE, (1,)),
            (ChangeKind.ADD, (2,)),
        ]


class TestTypeMismatch:
    """Tests for values of different types."""

    def test_mapping_vs_scalar(self):
        records = diff({"a": {"b": 1}}, {"a": "flat"})
        assert records == [
            ChangeRecord(ChangeKind.REPLACE, ("a",), old_value={"b": 1}, new_value="flat")
        ]

    def test_mapping_vs_sequence(self):
        records = diff({"a": [1]}, {"a": {"0": 1}})
        assert [r.kind for r in records] == [ChangeKind.REPLACE]

    def test_root_replace(self):
        records = diff(1, 2)
        assert records == [ChangeRecord(ChangeKind.REPLACE, (), old_value=1, new_value=2)]

    def test_bool_is_not_int(self):
        assert [r.kind for r in diff({"a": 1}, {"a": True})] == [ChangeKind.REPLACE]

    def test_string_is_not_number(self):
        assert [r.kind for r in diff({"port": "80"}, {"port": 80})] == [ChangeKind.REPLACE]

    def test_int_equals_float(self):
        assert diff({"cpu": 1}, {"cpu": 1.0}) == []

    def test_nan_equals_itself(self):
        """A document holding NaN diffs empty against itself."""
        document = {"spec": {"ratio": float("nan"), "values": [float("nan"), 1.0]}}

        assert diff(document, copy.deepcopy(document)) == []

    def test_nan_differs_from_number(self):
        records = diff({"ratio": float("nan")}, {"ratio": 0.5})

        assert [(r.kind, r.path, r.new_value) for r in records] == [
            (ChangeKind.REPLACE, ("ratio",), 0.5)
        ]


class TestHelpers:
    """Tests for equality helpers."""

    def test_scalars_equal(self):
        assert scalars_equal(None, None)
        assert not scalars_equal(None, "")
        assert not scalars_equal(False, 0)
        assert scalars_equal(float("nan"), float("nan"))
        assert not scalars_equal(float("nan"), 1.0)

    def test_documents_equal(self):
        assert documents_equal(SERVICE, copy.deepcopy(SERVICE))
        assert not documents_equal(SERVICE, {})
