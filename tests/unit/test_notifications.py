"""Tests for notification rule expansion."""

import pytest

from metaforge.core import ir, prelude
from metaforge.core.builder import ModelBuilder
from metaforge.core.errors import BatchError, UnknownField, UnresolvedReferenceType
from metaforge.core.notifications import default_templates, notification_type_id

GROUP = "test.ids.TaskNotificationGroup"


@pytest.fixture
def notify_builder(task_builder: ModelBuilder) -> ModelBuilder:
    task_builder.register_notification_group(
        GROUP, "test.string.Task", "test.class.Task", icon="test.icon.Task"
    )
    return task_builder


def _types(builder: ModelBuilder) -> dict[str, ir.NotificationTypeSpec]:
    result = builder.build()
    return {
        doc.id: ir.NotificationTypeSpec.model_validate(doc.payload)
        for doc in result.of_kind(prelude.NOTIFICATION_TYPE)
    }


class TestExpansion:
    def test_visible_fields_enabled(self, notify_builder: ModelBuilder):
        ids = notify_builder.expand_notifications("test.class.Task", GROUP, [], ["status", "assignee"])

        types = _types(notify_builder)

        assert ids == [
            f"{GROUP}:test.class.Task:assignee",
            f"{GROUP}:test.class.Task:status",
        ]
        assert set(types) == set(ids)
        for spec in types.values():
            assert spec.enabled
            assert spec.generated
            assert spec.providers == {
                ir.NotificationProvider.PLATFORM: True,
                ir.NotificationProvider.EMAIL: True,
            }
            assert spec.tx_classes == [prelude.TX_UPDATE_DOC]
            assert spec.object_class == "test.class.Task"

    def test_silent_fields_disabled(self, notify_builder: ModelBuilder):
        notify_builder.expand_notifications("test.class.Task", GROUP, ["rank"], [])

        [spec] = _types(notify_builder).values()

        assert not spec.enabled
        assert set(spec.providers.values()) == {False}

    def test_collection_field_tracks_attached_documents(self, notify_builder: ModelBuilder):
        notify_builder.expand_notifications("test.class.Task", GROUP, [], ["comments"])

        [spec] = _types(notify_builder).values()

        assert spec.tx_classes == [prelude.TX_CREATE_DOC, prelude.TX_REMOVE_DOC]
        assert spec.object_class == "test.class.Comment"
        assert spec.attached_to_class == "test.class.Task"

    def test_mixin_field_tracks_mixin_updates(self, notify_builder: ModelBuilder):
        notify_builder.expand_notifications("test.mixin.Labels", GROUP, [], ["labels", "title"])

        types = _types(notify_builder)

        labels = types[notification_type_id("test.mixin.Labels", GROUP, "labels")]
        title = types[notification_type_id("test.mixin.Labels", GROUP, "title")]
        assert labels.tx_classes == [prelude.TX_MIXIN]
        assert title.tx_classes == [prelude.TX_UPDATE_DOC]

    def test_field_in_both_lists_is_visible(self, notify_builder: ModelBuilder):
        notify_builder.expand_notifications("test.class.Task", GROUP, ["status"], ["status"])

        result = notify_builder.build()

        [doc] = result.of_kind(prelude.NOTIFICATION_TYPE)
        assert all(doc.payload["providers"].values())
        assert any("both silent and visible" in w for w in result.warnings)

    def test_templates_use_field_label(self, notify_builder: ModelBuilder):
        notify_builder.expand_notifications("test.class.Task", GROUP, [], ["assignee"])

        [spec] = _types(notify_builder).values()

        assert spec.label == "test.string.Assignee"
        assert spec.templates == default_templates("test.string.Assignee")
        assert "{doc}" in spec.templates.text_template
        assert "{sender}" in spec.templates.html_template

    def test_unknown_field(self, notify_builder: ModelBuilder):
        notify_builder.expand_notifications("test.class.Task", GROUP, [], ["budget"])

        with pytest.raises(BatchError) as exc_info:
            notify_builder.build()

        assert exc_info.value.has(UnknownField)

    def test_unknown_group(self, task_builder: ModelBuilder):
        task_builder.expand_notifications("test.class.Task", "test.ids.Missing", [], ["status"])

        with pytest.raises(BatchError) as exc_info:
            task_builder.build()

        assert exc_info.value.has(UnresolvedReferenceType)

    def test_unknown_class(self, notify_builder: ModelBuilder):
        notify_builder.expand_notifications("test.class.Missing", GROUP, [], ["status"])

        with pytest.raises(BatchError) as exc_info:
            notify_builder.build()

        assert exc_info.value.has(UnresolvedReferenceType)


class TestIdempotence:
    def test_repeated_rule_in_batch(self, notify_builder: ModelBuilder):
        first = notify_builder.expand_notifications("test.class.Task", GROUP, [], ["status"])
        second = notify_builder.expand_notifications("test.class.Task", GROUP, [], ["status"])

        types = _types(notify_builder)

        assert first == second
        assert len(types) == 1

    def test_repeated_rule_in_later_batch(self, notify_builder: ModelBuilder):
        notify_builder.expand_notifications("test.class.Task", GROUP, [], ["status"])
        base = notify_builder.build().model

        again = ModelBuilder(name="again", base=base)
        again.expand_notifications("test.class.Task", GROUP, [], ["status"])
        result = again.build()

        assert result.of_kind(prelude.NOTIFICATION_TYPE) == []

    def test_changed_rule_in_later_batch_conflicts(self, notify_builder: ModelBuilder):
        notify_builder.expand_notifications("test.class.Task", GROUP, [], ["status"])
        base = notify_builder.build().model

        again = ModelBuilder(name="again", base=base)
        again.expand_notifications("test.class.Task", GROUP, ["status"], [])

        with pytest.raises(BatchError):
            again.build()


class TestHandWrittenTypes:
    def _spec(self, **overrides) -> ir.NotificationTypeSpec:
        data = {
            "label": "test.string.AssignedToMe",
            "group": GROUP,
            "field": "assignee",
            "tx_classes": [prelude.TX_CREATE_DOC, prelude.TX_UPDATE_DOC],
            "object_class": "test.class.Task",
            "providers": {"platform": True},
        }
        data.update(overrides)
        return ir.NotificationTypeSpec.model_validate(data)

    def test_registered(self, notify_builder: ModelBuilder):
        notify_builder.register_notification_type("test.ids.AssigneeNotification", self._spec())

        types = _types(notify_builder)

        spec = types["test.ids.AssigneeNotification"]
        assert spec.enabled
        assert not spec.generated

    def test_reserved_field_allowed(self, notify_builder: ModelBuilder):
        notify_builder.register_notification_type(
            "test.ids.Created", self._spec(field="space", space_subscribe=True)
        )
        assert "test.ids.Created" in _types(notify_builder)

    def test_non_transaction_class_rejected(self, notify_builder: ModelBuilder):
        notify_builder.register_notification_type(
            "test.ids.Bad", self._spec(tx_classes=["test.class.Person"])
        )

        with pytest.raises(BatchError) as exc_info:
            notify_builder.build()

        assert exc_info.value.has(UnresolvedReferenceType)

    def test_unknown_field_rejected(self, notify_builder: ModelBuilder):
        notify_builder.register_notification_type("test.ids.Bad", self._spec(field="budget"))

        with pytest.raises(BatchError) as exc_info:
            notify_builder.build()

        assert exc_info.value.has(UnknownField)
