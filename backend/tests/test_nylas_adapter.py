"""
Tests for normalizing Nylas notification shapes into MessagePayload /
MessageReference.
"""

from bridge.models.notification import (
    InboundNotification,
    MessagePayload,
    MessageReference,
)
from bridge.services.nylas_adapter import (
    MESSAGE_EVENT_TYPES,
    message_record_from_dict,
    normalize_notification,
)


def _notification(data: dict, event_type: str = "message.created") -> InboundNotification:
    return InboundNotification.model_validate({"type": event_type, "data": data})


class TestInboundNotification:

    def test_unknown_envelope_keys_are_ignored(self):
        n = InboundNotification.model_validate(
            {"specversion": "1.0", "type": "message.created", "source": "x", "data": {}}
        )
        assert n.type == "message.created"
        assert n.data == {}

    def test_missing_fields_default(self):
        n = InboundNotification.model_validate({})
        assert n.type == ""
        assert n.data == {}


class TestMessageEventTypes:

    def test_truncated_variants_are_message_events(self):
        assert "message.created.truncated" in MESSAGE_EVENT_TYPES
        assert "message.updated.truncated" in MESSAGE_EVENT_TYPES

    def test_grant_events_are_not_message_events(self):
        assert "grant.created" not in MESSAGE_EVENT_TYPES


class TestMessageRecordFromDict:

    def test_maps_known_fields(self):
        record = message_record_from_dict(
            {"id": "m1", "grant_id": "g1", "subject": "S", "body": "<p>B</p>", "snippet": "B"}
        )
        assert record.id == "m1"
        assert record.grant_id == "g1"
        assert record.subject == "S"
        assert record.body == "<p>B</p>"
        assert record.snippet == "B"

    def test_non_string_text_becomes_empty(self):
        record = message_record_from_dict({"id": "m1", "body": None, "subject": 5})
        assert record.body == ""
        assert record.subject == ""
        assert record.has_body is False

    def test_grant_id_fallback(self):
        record = message_record_from_dict({"id": "m1"}, grant_id="g-outer")
        assert record.grant_id == "g-outer"


class TestNormalizeNotification:

    def test_v3_object_with_content_is_payload(self):
        result = normalize_notification(_notification({
            "object": {"id": "m1", "grant_id": "g1", "subject": "Hi", "body": "Body"}
        }))

        assert isinstance(result, MessagePayload)
        assert result.kind == "message"
        assert result.record.id == "m1"
        assert result.record.grant_id == "g1"
        assert result.record.body == "Body"

    def test_flat_data_with_content_is_payload(self):
        result = normalize_notification(_notification({
            "id": "m1", "grant_id": "g1", "snippet": "Företag: Acme"
        }))

        assert isinstance(result, MessagePayload)
        assert result.record.snippet == "Företag: Acme"
        assert result.record.body == ""

    def test_truncated_object_without_body_is_payload(self):
        """A truncated event still has subject/snippet, so it stays a record."""
        result = normalize_notification(_notification(
            {"object": {"id": "m1", "grant_id": "g1", "subject": "Big mail"}},
            event_type="message.created.truncated",
        ))

        assert isinstance(result, MessagePayload)
        assert result.record.has_body is False

    def test_ids_only_is_reference(self):
        result = normalize_notification(_notification({
            "object": {"id": "m1", "grant_id": "g1"}
        }))

        assert isinstance(result, MessageReference)
        assert result.kind == "reference"
        assert result.message_id == "m1"
        assert result.grant_id == "g1"

    def test_grant_id_on_data_level_is_used(self):
        result = normalize_notification(_notification({
            "grant_id": "g-outer", "object": {"id": "m1"}
        }))

        assert isinstance(result, MessageReference)
        assert result.grant_id == "g-outer"

    def test_id_without_grant_is_nothing(self):
        assert normalize_notification(_notification({"object": {"id": "m1"}})) is None

    def test_empty_data_is_nothing(self):
        assert normalize_notification(_notification({})) is None

    def test_non_dict_object_falls_back_to_data(self):
        result = normalize_notification(_notification({
            "object": "message", "id": "m1", "grant_id": "g1", "body": "x"
        }))

        assert isinstance(result, MessagePayload)
        assert result.record.id == "m1"
