import json
from datetime import UTC, datetime, timedelta, timezone

import pytest
from fourkeys.core.errors import ExtractionFailure, MissingField, UnsupportedEventType
from fourkeys.schemas.envelope import WebhookEnvelope
from fourkeys.schemas.events import NormalizedEvent, Skip
from fourkeys.services.normalizer import (
    RECOGNIZED_EVENT_TYPES,
    RULES,
    EventNormalizer,
)

TS = "2024-05-01T12:34:56Z"
EARLIER = "2024-05-01T12:00:00Z"
PARSED = datetime(2024, 5, 1, 12, 34, 56, tzinfo=UTC)


def envelope(event_type, payload, extra_headers=None, message_id="msg-1"):
    headers = {
        "X-Github-Event": [event_type],
        "X-Hub-Signature-256": ["sha256=abc"],
        "User-Agent": ["GitHub-Hookshot/044aadd"],
    }
    headers.update(extra_headers or {})
    raw = json.dumps(payload).encode()
    return WebhookEnvelope(
        message_id=message_id, headers=headers, raw_body=raw, payload=payload
    )


@pytest.fixture
def normalizer():
    return EventNormalizer()


# One minimal payload per tracked event type, with the id it should yield.
CASES = {
    "push": ({"head_commit": {"id": "6dcb09b5b5", "timestamp": TS}}, "6dcb09b5b5"),
    "pull_request": (
        {"number": 42, "repository": {"name": "acme/widgets"}, "pull_request": {"updated_at": TS}},
        "acme/widgets/42",
    ),
    "pull_request_review": ({"review": {"id": 80, "submitted_at": TS}}, "80"),
    "pull_request_review_comment": (
        {"comment": {"id": 11, "updated_at": TS}, "review": {"id": 80}},
        "80",
    ),
    "issues": (
        {"issue": {"number": 7, "updated_at": TS}, "repository": {"name": "widgets"}},
        "widgets/7",
    ),
    "issue_comment": ({"comment": {"id": 1362, "updated_at": TS}}, "1362"),
    "check_run": ({"check_run": {"id": 128620228, "completed_at": TS}}, "128620228"),
    "check_suite": ({"check_suite": {"id": 118578147, "updated_at": TS}}, "118578147"),
    "status": ({"id": 214015194, "updated_at": TS}, "214015194"),
    "deployment_status": (
        {"deployment_status": {"id": 2, "updated_at": TS}},
        "2",
    ),
    "release": ({"release": {"id": 2, "published_at": TS}}, "2"),
}


def test_cases_cover_every_tracked_type():
    assert set(CASES) == RECOGNIZED_EVENT_TYPES == set(RULES)


@pytest.mark.parametrize("event_type", sorted(CASES))
def test_each_tracked_type(normalizer, event_type):
    payload, expected_id = CASES[event_type]
    event = normalizer.normalize(envelope(event_type, payload))

    assert isinstance(event, NormalizedEvent)
    assert event.event_type == event_type
    assert event.id == expected_id
    assert event.time_created == PARSED
    assert event.metadata == json.dumps(payload)
    assert event.signature == "sha256=abc"
    assert event.msg_id == "msg-1"
    assert event.source == "github"


def test_pull_request_id_composition(normalizer):
    payload = {
        "repository": {"name": "acme/widgets"},
        "number": 42,
        "pull_request": {"updated_at": TS},
    }
    assert normalizer.normalize(envelope("pull_request", payload)).id == "acme/widgets/42"


def test_composed_number_decoded_as_float(normalizer):
    payload = {
        "repository": {"name": "widgets"},
        "number": 42.0,
        "pull_request": {"updated_at": TS},
    }
    assert normalizer.normalize(envelope("pull_request", payload)).id == "widgets/42"


def test_composed_number_must_be_numeric(normalizer):
    payload = {
        "repository": {"name": "widgets"},
        "number": "42",
        "pull_request": {"updated_at": TS},
    }
    with pytest.raises(ExtractionFailure, match="could not find id"):
        normalizer.normalize(envelope("pull_request", payload))


def test_review_comment_is_keyed_on_review_id(normalizer):
    # pull_request_review_comment reads review.id, not comment.id
    payload = {"comment": {"id": 11, "updated_at": TS}, "review": {"id": 80}}
    assert normalizer.normalize(envelope("pull_request_review_comment", payload)).id == "80"

    without_review = {"comment": {"id": 11, "updated_at": TS}}
    with pytest.raises(ExtractionFailure, match="key review not found"):
        normalizer.normalize(envelope("pull_request_review_comment", without_review))


def test_string_identifiers_are_kept_verbatim(normalizer):
    payload = {"check_run": {"id": "cr-1", "completed_at": TS}}
    assert normalizer.normalize(envelope("check_run", payload)).id == "cr-1"


def test_fractional_identifier_is_rejected(normalizer):
    payload = {"check_run": {"id": 1.5, "completed_at": TS}}
    with pytest.raises(ExtractionFailure):
        normalizer.normalize(envelope("check_run", payload))


def test_check_run_prefers_completed_at(normalizer):
    payload = {"check_run": {"id": 1, "completed_at": TS, "started_at": EARLIER}}
    assert normalizer.normalize(envelope("check_run", payload)).time_created == PARSED


def test_check_run_falls_back_to_started_at(normalizer):
    payload = {"check_run": {"id": 1, "started_at": EARLIER}}
    event = normalizer.normalize(envelope("check_run", payload))
    assert event.time_created == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def test_null_candidate_falls_back(normalizer):
    # In-progress runs send completed_at: null
    payload = {"check_run": {"id": 1, "completed_at": None, "started_at": EARLIER}}
    event = normalizer.normalize(envelope("check_run", payload))
    assert event.time_created == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    "event_type,container,preferred,fallback",
    [
        ("check_suite", "check_suite", "updated_at", "created_at"),
        ("release", "release", "published_at", "created_at"),
    ],
)
def test_other_fallback_chains(normalizer, event_type, container, preferred, fallback):
    both = {container: {"id": 9, preferred: TS, fallback: EARLIER}}
    assert normalizer.normalize(envelope(event_type, both)).time_created == PARSED

    only_fallback = {container: {"id": 9, fallback: EARLIER}}
    event = normalizer.normalize(envelope(event_type, only_fallback))
    assert event.time_created == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def test_missing_time_and_id_reported_together(normalizer):
    with pytest.raises(ExtractionFailure) as exc:
        normalizer.normalize(envelope("push", {"head_commit": {}}))

    failure = exc.value
    assert failure.event_type == "push"
    assert [e.field for e in failure.errors] == ["time_created", "id"]
    assert all(isinstance(e, MissingField) for e in failure.errors)
    message = str(failure)
    assert "could not find time_created: key timestamp not found in head_commit" in message
    assert "could not find id: key id not found in head_commit" in message


def test_missing_candidates_are_all_diagnosed(normalizer):
    with pytest.raises(ExtractionFailure) as exc:
        normalizer.normalize(envelope("check_run", {"check_run": {"id": 1}}))
    (missing,) = exc.value.errors
    assert [c.key for c in missing.causes] == ["completed_at", "started_at"]


def test_unparsable_timestamp_is_a_failure(normalizer):
    payload = {"head_commit": {"id": "abc", "timestamp": "2024-05-01 12:34:56"}}
    with pytest.raises(ExtractionFailure, match="could not parse time_created"):
        normalizer.normalize(envelope("push", payload))


def test_timestamp_without_offset_is_a_failure(normalizer):
    payload = {"head_commit": {"id": "abc", "timestamp": "2024-05-01T12:34:56"}}
    with pytest.raises(ExtractionFailure, match="could not parse time_created"):
        normalizer.normalize(envelope("push", payload))


def test_bad_timestamp_and_missing_id_reported_together(normalizer):
    payload = {"head_commit": {"timestamp": "yesterday"}}
    with pytest.raises(ExtractionFailure) as exc:
        normalizer.normalize(envelope("push", payload))
    assert len(exc.value.errors) == 2


def test_timestamp_offsets_are_preserved(normalizer):
    payload = {"head_commit": {"id": "abc", "timestamp": "2024-05-01T21:34:56.123+09:00"}}
    event = normalizer.normalize(envelope("push", payload))
    assert event.time_created.utcoffset() == timedelta(hours=9)
    assert event.time_created == datetime(2024, 5, 1, 12, 34, 56, 123000, tzinfo=timezone.utc)


def test_untracked_type_is_skipped(normalizer):
    outcome = normalizer.normalize(envelope("star", {"action": "created"}))
    assert isinstance(outcome, Skip)
    assert outcome.event_type == "star"


def test_missing_event_header_is_skipped(normalizer):
    env = WebhookEnvelope(message_id="m", headers={}, raw_body=b"{}", payload={})
    assert isinstance(normalizer.normalize(env), Skip)


def test_tracked_type_without_rule_is_an_error():
    normalizer = EventNormalizer(recognized=RECOGNIZED_EVENT_TYPES | {"star"})
    with pytest.raises(UnsupportedEventType, match="event type star is not supported"):
        normalizer.normalize(envelope("star", {"action": "created"}))


def test_mock_traffic_is_tagged(normalizer):
    payload, _ = CASES["push"]
    event = normalizer.normalize(envelope("push", payload, {"Mock": ["True"]}))
    assert event.source == "github_mock"


def test_legacy_signature_is_copied_when_alone(normalizer):
    payload, _ = CASES["push"]
    env = WebhookEnvelope(
        message_id="m",
        headers={"X-Github-Event": ["push"], "X-Hub-Signature": ["sha1=abc"]},
        raw_body=json.dumps(payload).encode(),
        payload=payload,
    )
    assert normalizer.normalize(env).signature == "sha1=abc"


def test_same_envelope_same_record(normalizer):
    payload, _ = CASES["pull_request"]
    env = envelope("pull_request", payload)
    first = normalizer.normalize(env)
    second = normalizer.normalize(env)
    assert first == second
    assert first.model_dump_json() == second.model_dump_json()
