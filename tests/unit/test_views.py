"""Tests for view derivation and ordering semantics."""

import pytest

from metaforge.core import ir, prelude
from metaforge.core.builder import ModelBuilder
from metaforge.core.errors import (
    BatchError,
    InvalidLookupPath,
    UnknownField,
    UnresolvedReferenceType,
)
from metaforge.core.views import group_records, parse_lookup_path, sort_records


def _build_errors(builder: ModelBuilder) -> BatchError:
    with pytest.raises(BatchError) as exc_info:
        builder.build()
    return exc_info.value


class TestDeriveView:
    def test_table_view_emitted(self, task_builder: ModelBuilder):
        task_builder.derive_view(
            "test.class.Task",
            ir.ViewletDescriptorKind.TABLE,
            ["", "title", ir.FieldConfig(key="assignee", label="test.string.Owner"), "modifiedOn"],
            view_id="test.viewlet.TableTask",
        )

        result = task_builder.build()

        doc = result.get("test.viewlet.TableTask")
        assert doc.kind == prelude.VIEWLET
        assert doc.payload["descriptor"] == "view.viewlet.Table"
        assert doc.payload["fields"][:2] == ["", "title"]
        assert doc.payload["fields"][2]["key"] == "assignee"
        assert doc.payload["fields"][3] == "modifiedOn"

    def test_descriptor_by_name(self, task_builder: ModelBuilder):
        view = task_builder.derive_view("test.class.Task", "kanban", ["title"])
        assert view.descriptor == "view.viewlet.Kanban"

    def test_view_on_mixin_sees_target_properties(self, task_builder: ModelBuilder):
        task_builder.derive_view("test.mixin.Labels", "list", ["title", "labels"])
        assert task_builder.build().of_kind(prelude.VIEWLET)

    def test_unknown_field(self, task_builder: ModelBuilder):
        task_builder.derive_view("test.class.Task", "table", ["title", "budget"])

        error = _build_errors(task_builder)

        assert error.has(UnknownField)
        assert "budget" in str(error.of_kind(UnknownField)[0])

    def test_unknown_target(self, task_builder: ModelBuilder):
        task_builder.derive_view("test.class.Missing", "table", ["title"])
        assert _build_errors(task_builder).has(UnresolvedReferenceType)

    def test_unknown_custom_descriptor(self, task_builder: ModelBuilder):
        task_builder.derive_view("test.class.Task", "test.viewlet.Gantt", ["title"])
        assert _build_errors(task_builder).has(UnresolvedReferenceType)

    def test_nested_property_path_uses_root(self, task_builder: ModelBuilder):
        task_builder.derive_view("test.class.Task", "table", ["assignee.name"])
        task_builder.build()


class TestLookups:
    def test_lookup_path_needs_declared_relation(self, task_builder: ModelBuilder):
        task_builder.derive_view("test.class.Task", "table", ["$lookup.assignee.name"])
        assert _build_errors(task_builder).has(InvalidLookupPath)

    def test_declared_lookup(self, task_builder: ModelBuilder):
        task_builder.derive_view(
            "test.class.Task",
            "table",
            [ir.FieldConfig(key="$lookup.assignee", sorting_key="$lookup.assignee.name")],
            lookup={"assignee": "test.class.Person"},
        )
        task_builder.build()

    @pytest.mark.parametrize("key", ["$lookup", "$lookup.", "$lookup..name", "$other.assignee"])
    def test_malformed_lookup_path(self, task_builder: ModelBuilder, key):
        task_builder.derive_view(
            "test.class.Task", "table", [key], lookup={"assignee": "test.class.Person"}
        )
        assert _build_errors(task_builder).has(InvalidLookupPath)

    def test_lookup_relation_must_be_property(self, task_builder: ModelBuilder):
        task_builder.derive_view(
            "test.class.Task", "table", ["title"], lookup={"owner": "test.class.Person"}
        )
        assert _build_errors(task_builder).has(InvalidLookupPath)

    def test_lookup_class_must_match_reference(self, task_builder: ModelBuilder):
        task_builder.derive_view(
            "test.class.Task", "table", ["title"], lookup={"assignee": "test.class.Comment"}
        )
        assert _build_errors(task_builder).has(InvalidLookupPath)

    def test_reverse_lookup_on_reserved_key(self, task_builder: ModelBuilder):
        task_builder.derive_view(
            "test.class.Task",
            "table",
            ["title"],
            lookup={"_id": ir.RelatedLookup(related=("test.class.Comment", "attachedTo"))},
        )
        task_builder.build()

    def test_parse_lookup_path(self):
        assert parse_lookup_path("$lookup.attachedTo.$lookup.channels") == [
            "attachedTo",
            "$lookup",
            "channels",
        ]
        assert parse_lookup_path("$lookup") is None
        assert parse_lookup_path("title") is None


class TestSortAndGroupKeys:
    def test_order_by_and_group_by_checked(self, task_builder: ModelBuilder):
        task_builder.derive_view(
            "test.class.Task",
            "list",
            ["title"],
            view_options=ir.ViewOptions(
                group_by=["status", "estimate"],
                order_by=[("modifiedOn", ir.SortingOrder.DESCENDING), ("size", 1)],
            ),
        )

        error = _build_errors(task_builder)

        messages = [str(e) for e in error.of_kind(UnknownField)]
        assert len(messages) == 2
        assert any("estimate" in m for m in messages)
        assert any("size" in m for m in messages)

    def test_hidden_and_sorting_keys_checked(self, task_builder: ModelBuilder):
        task_builder.derive_view(
            "test.class.Task",
            "table",
            [ir.FieldConfig(key="title", sorting_key=["rank", "weight"])],
            config_options=ir.ConfigOptions(hidden_keys=["color"]),
        )

        error = _build_errors(task_builder)

        assert len(error.of_kind(UnknownField)) == 2

    def test_view_options_round_trip_in_payload(self, task_builder: ModelBuilder):
        task_builder.derive_view(
            "test.class.Task",
            "list",
            ["title"],
            view_options=ir.ViewOptions(
                group_by=["status"], order_by=[("rank", ir.SortingOrder.ASCENDING)]
            ),
            view_id="test.viewlet.ListTask",
        )

        payload = task_builder.build().get("test.viewlet.ListTask").payload

        assert payload["view_options"]["group_by"] == ["status"]
        assert payload["view_options"]["order_by"] == [["rank", 1]]


class TestOrdering:
    RECORDS = [
        {"id": 1, "status": "b", "rank": 1},
        {"id": 2, "status": "a", "rank": 1},
        {"id": 3, "status": "a", "rank": 2},
        {"id": 4, "status": "b", "rank": 1},
    ]

    def test_first_rule_dominates(self):
        ordered = sort_records(
            self.RECORDS,
            [("status", ir.SortingOrder.ASCENDING), ("rank", ir.SortingOrder.DESCENDING)],
        )
        assert [r["id"] for r in ordered] == [3, 2, 1, 4]

    def test_ties_keep_input_order(self):
        ordered = sort_records(self.RECORDS, [("rank", ir.SortingOrder.ASCENDING)])
        assert [r["id"] for r in ordered] == [1, 2, 4, 3]

    def test_missing_values_sort_last(self):
        records = [{"id": 1}, {"id": 2, "rank": 5}]
        ordered = sort_records(records, [("rank", ir.SortingOrder.ASCENDING)])
        assert [r["id"] for r in ordered] == [2, 1]

    def test_missing_values_sort_last_descending(self):
        records = [{"id": 1}, {"id": 2, "rank": 5}, {"id": 3, "rank": 7}]
        ordered = sort_records(records, [("rank", ir.SortingOrder.DESCENDING)])
        assert [r["id"] for r in ordered] == [3, 2, 1]

    def test_mixed_value_types(self):
        records = [{"id": 1, "rank": "a"}, {"id": 2, "rank": 2}, {"id": 3, "rank": True}]
        ordered = sort_records(records, [("rank", ir.SortingOrder.ASCENDING)])
        assert [r["id"] for r in ordered] == [3, 2, 1]

    def test_group_records_nested_first_seen(self):
        groups = group_records(self.RECORDS, ["status", "rank"])

        assert list(groups) == ["b", "a"]
        assert [r["id"] for r in groups["b"][1]] == [1, 4]
        assert [r["id"] for r in groups["a"][2]] == [3]

    def test_group_records_without_keys(self):
        assert group_records(self.RECORDS, []) == {None: self.RECORDS}
