"""Tests for the YAML schema source."""

from pathlib import Path

import pytest

from metaforge.core import ir, prelude
from metaforge.core.errors import BatchError, SchemaLoadError, UnknownField
from metaforge.core.schema_loader import load_schema_file, parse_value_type

SCHEMA = """
module: tasks
classes:
  - id: tasks.class.Project
    parent: core.class.Space
    label: tasks.string.Project
  - id: tasks.class.Task
    parent: core.class.AttachedDoc
    label_prop: title
    properties:
      - {name: title, type: string, index: full_text}
      - {name: status, type: "enum:open,closed"}
      - {name: rank, type: string, hidden: true}
mixins:
  - id: tasks.mixin.Estimate
    target: tasks.class.Task
    properties:
      - {name: hours, type: number}
apply:
  - {target: tasks.class.Task, mixin: view.mixin.ObjectEditor, payload: {editor: tasks.component.EditTask}}
views:
  - id: tasks.viewlet.ListTask
    target: tasks.class.Task
    descriptor: list
    fields: [title, {key: status, label: tasks.string.Status}]
    view_options:
      group_by: [status]
      order_by:
        - [rank, desc]
        - {key: modifiedOn}
notification_groups:
  - {id: tasks.ids.TaskGroup, label: tasks.string.Task, object_class: tasks.class.Task}
notifications:
  - {class: tasks.class.Task, group: tasks.ids.TaskGroup, silent: [rank], visible: [status]}
action_categories:
  - {id: tasks.category.Tasks, label: tasks.string.Tasks}
actions:
  - {template: archive_space, target: tasks.class.Project}
  - id: tasks.action.Create
    action: view.actionImpl.ShowPopup
    label: tasks.string.Create
    target: tasks.class.Task
    category: tasks.category.Tasks
applications:
  - id: tasks.app.Tasks
    label: tasks.string.Tasks
    alias: tasks
    navigator:
      spaces:
        - {label: tasks.string.Projects, space_class: tasks.class.Project}
"""


def _write(tmp_path: Path, text: str, name: str = "tasks.yaml") -> Path:
    path = tmp_path / name
    path.write_text(text)
    return path


class TestParseValueType:
    @pytest.mark.parametrize(
        "raw,kind",
        [
            ("string", ir.ValueKind.STRING),
            ("markup", ir.ValueKind.MARKUP),
            ("number", ir.ValueKind.NUMBER),
            ("boolean", ir.ValueKind.BOOLEAN),
            ("date", ir.ValueKind.DATE),
            ("timestamp", ir.ValueKind.TIMESTAMP),
        ],
    )
    def test_scalars(self, raw, kind):
        assert parse_value_type(raw).kind == kind

    def test_references(self):
        assert parse_value_type("ref:core.class.Doc") == ir.type_ref("core.class.Doc")
        assert parse_value_type("collection:a.class.B") == ir.collection("a.class.B")
        assert parse_value_type("array:a.class.B") == ir.array_of("a.class.B")

    def test_enum(self):
        assert parse_value_type("enum:open, closed").values == ["open", "closed"]

    def test_mapping(self):
        value_type = parse_value_type({"kind": "ref", "of": "core.class.Doc"})
        assert value_type.is_reference

    @pytest.mark.parametrize("raw", ["ref", "string:x", "blob", 42])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_value_type(raw)


class TestLoadSchemaFile:
    def test_full_schema_builds(self, tmp_path: Path):
        builder = load_schema_file(_write(tmp_path, SCHEMA))

        result = builder.build()

        assert builder.name == "tasks"
        assert result.get("tasks.class.Task").payload["label_prop"] == "title"
        assert result.get("tasks.mixin.Estimate").kind == prelude.MIXIN
        assert len(result.of_kind(prelude.OBJECT_EDITOR)) == 1
        assert len(result.of_kind(prelude.NOTIFICATION_TYPE)) == 2
        assert result.get("tasks.action.Create").payload["category"] == "tasks.category.Tasks"
        assert result.get("tasks.app.Tasks").kind == prelude.APPLICATION

    def test_view_options_parsed(self, tmp_path: Path):
        result = load_schema_file(_write(tmp_path, SCHEMA)).build()

        view = ir.ViewDescriptor.model_validate(result.get("tasks.viewlet.ListTask").payload)

        assert view.descriptor == "view.viewlet.List"
        assert view.sort_rules == [
            ("rank", ir.SortingOrder.DESCENDING),
            ("modifiedOn", ir.SortingOrder.ASCENDING),
        ]
        assert view.group_rules == ["status"]
        assert isinstance(view.fields[1], ir.FieldConfig)

    def test_batch_name_defaults_to_file_stem(self, tmp_path: Path):
        path = _write(tmp_path, "classes: []\n", name="extra.yaml")
        assert load_schema_file(path).name == "extra"

    def test_empty_file(self, tmp_path: Path):
        result = load_schema_file(_write(tmp_path, "")).build()
        assert result.documents == []

    def test_validation_errors_surface_on_build(self, tmp_path: Path):
        text = SCHEMA.replace("fields: [title,", "fields: [budget,")
        builder = load_schema_file(_write(tmp_path, text))

        with pytest.raises(BatchError) as exc_info:
            builder.build()

        assert exc_info.value.has(UnknownField)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(SchemaLoadError):
            load_schema_file(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path):
        with pytest.raises(SchemaLoadError, match="Invalid YAML"):
            load_schema_file(_write(tmp_path, "classes: [\n"))

    def test_not_a_mapping(self, tmp_path: Path):
        with pytest.raises(SchemaLoadError, match="mapping"):
            load_schema_file(_write(tmp_path, "- a\n- b\n"))

    def test_missing_required_key(self, tmp_path: Path):
        with pytest.raises(SchemaLoadError, match="malformed"):
            load_schema_file(_write(tmp_path, "mixins:\n  - id: a.mixin.M\n"))

    def test_bad_property_type(self, tmp_path: Path):
        text = "classes:\n  - id: a.class.A\n    properties:\n      - {name: x, type: blob}\n"
        with pytest.raises(SchemaLoadError):
            load_schema_file(_write(tmp_path, text))

    def test_unknown_action_template(self, tmp_path: Path):
        text = "actions:\n  - {template: explode, target: core.class.Doc}\n"
        with pytest.raises(SchemaLoadError, match="explode"):
            load_schema_file(_write(tmp_path, text))

    def test_incremental_base(self, tmp_path: Path):
        base = load_schema_file(_write(tmp_path, SCHEMA)).build().model
        text = """
classes:
  - id: tasks.class.Bug
    parent: tasks.class.Task
    properties:
      - {name: severity, type: number}
"""
        result = load_schema_file(_write(tmp_path, text, name="bugs.yaml"), base=base).build()

        props = result.model.effective_properties_of("tasks.class.Bug")
        assert {"title", "status", "severity"} <= set(props)
