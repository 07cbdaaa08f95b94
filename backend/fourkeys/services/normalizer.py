"""Turn GitHub webhook payloads into canonical event records.

Each tracked event type has a rule naming where its creation time lives
(one or more candidate paths, tried in order, first present wins) and how
its identifier is derived (a single field, or ``<repository name>/<number>``).

Outcomes are explicit:

* ``NormalizedEvent`` when both fields resolve and the time is RFC 3339.
* ``Skip`` when the event type is not tracked. Most GitHub traffic is
  irrelevant to delivery metrics, so this is not an error.
* ``ExtractionFailure`` when required fields are missing or malformed.
  Missing time and missing id are reported together.
* ``UnsupportedEventType`` when a type is tracked but has no rule.

Normalization depends only on its input, so redelivering the same envelope
produces the same record.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field

from fourkeys.core.errors import ExtractionFailure, MissingField, UnsupportedEventType
from fourkeys.schemas.envelope import WebhookEnvelope
from fourkeys.schemas.events import NormalizedEvent, Skip
from fourkeys.services import sources
from fourkeys.services.signature import LEGACY_SIGNATURE_HEADER, SIGNATURE_256_HEADER
from fourkeys.shared import headers as header_utils
from fourkeys.shared import rfc3339
from fourkeys.shared.navigator import (
    JSONValue,
    NumericTypeMismatch,
    PathError,
    TypeMismatch,
    lookup,
    require,
)

EVENT_TYPE_HEADER = "X-Github-Event"

Path = tuple[str, ...]


def scalar_id(payload: JSONValue, *path: str) -> str:
    """Read an identifier that may arrive as a string or an integral number."""
    try:
        return str(require(payload, *path, expect=int))
    except NumericTypeMismatch as e:
        if float(e.value).is_integer():
            return str(int(e.value))
        raise
    except TypeMismatch:
        return require(payload, *path, expect=str)


def integral(payload: JSONValue, *path: str) -> int:
    try:
        return require(payload, *path, expect=int)
    except NumericTypeMismatch as e:
        if float(e.value).is_integer():
            return int(e.value)
        raise


@dataclass(frozen=True)
class FieldId:
    path: Path

    def __call__(self, payload: JSONValue) -> str:
        return scalar_id(payload, *self.path)


@dataclass(frozen=True)
class CompositeId:
    """``<name>/<number>``, e.g. ``acme/widgets/42``."""

    name_path: Path
    number_path: Path

    def __call__(self, payload: JSONValue) -> str:
        name = require(payload, *self.name_path, expect=str)
        number = integral(payload, *self.number_path)
        return f"{name}/{number}"


@dataclass(frozen=True)
class EventRule:
    time_paths: tuple[Path, ...]
    identify: FieldId | CompositeId

    def resolve_time(self, payload: JSONValue) -> str:
        for path in self.time_paths:
            value, found = lookup(payload, *path, expect=str)
            if found:
                return value

        causes: list[Exception] = []
        for path in self.time_paths:
            try:
                require(payload, *path, expect=str)
            except PathError as e:
                causes.append(e)
        raise MissingField("time_created", causes)

    def resolve_id(self, payload: JSONValue) -> str:
        try:
            return self.identify(payload)
        except PathError as e:
            raise MissingField("id", [e]) from e


RULES: Mapping[str, EventRule] = {
    "push": EventRule(
        (("head_commit", "timestamp"),),
        FieldId(("head_commit", "id")),
    ),
    "pull_request": EventRule(
        (("pull_request", "updated_at"),),
        CompositeId(("repository", "name"), ("number",)),
    ),
    "pull_request_review": EventRule(
        (("review", "submitted_at"),),
        FieldId(("review", "id")),
    ),
    # Keyed on the parent review, not the comment itself.
    "pull_request_review_comment": EventRule(
        (("comment", "updated_at"),),
        FieldId(("review", "id")),
    ),
    "issues": EventRule(
        (("issue", "updated_at"),),
        CompositeId(("repository", "name"), ("issue", "number")),
    ),
    "issue_comment": EventRule(
        (("comment", "updated_at"),),
        FieldId(("comment", "id")),
    ),
    "check_run": EventRule(
        (("check_run", "completed_at"), ("check_run", "started_at")),
        FieldId(("check_run", "id")),
    ),
    "check_suite": EventRule(
        (("check_suite", "updated_at"), ("check_suite", "created_at")),
        FieldId(("check_suite", "id")),
    ),
    "status": EventRule(
        (("updated_at",),),
        FieldId(("id",)),
    ),
    "deployment_status": EventRule(
        (("deployment_status", "updated_at"),),
        FieldId(("deployment_status", "id")),
    ),
    "release": EventRule(
        (("release", "published_at"), ("release", "created_at")),
        FieldId(("release", "id")),
    ),
}

RECOGNIZED_EVENT_TYPES: frozenset[str] = frozenset(RULES)


@dataclass(frozen=True)
class EventNormalizer:
    provider: str = "github"
    rules: Mapping[str, EventRule] = field(default_factory=lambda: RULES)
    recognized: frozenset[str] = RECOGNIZED_EVENT_TYPES

    def normalize(self, envelope: WebhookEnvelope) -> NormalizedEvent | Skip:
        event_type = header_utils.first(envelope.headers, EVENT_TYPE_HEADER) or ""
        if event_type not in self.recognized:
            return Skip(
                event_type=event_type,
                reason=f"event type {event_type} is not supported",
            )

        id_, time_created = self.extract(event_type, envelope.payload)

        return NormalizedEvent(
            event_type=event_type,
            id=id_,
            metadata=envelope.raw_body.decode("utf-8", errors="replace"),
            time_created=time_created,
            signature=self.signature(envelope.headers),
            msg_id=envelope.message_id,
            source=self.source(envelope.headers),
        )

    def extract(self, event_type: str, payload: JSONValue):
        """Resolve ``(id, time_created)`` for a recognized event type."""
        rule = self.rules.get(event_type)
        if rule is None:
            raise UnsupportedEventType(event_type)

        errors: list[Exception] = []
        time_created = id_ = None

        try:
            raw_time = rule.resolve_time(payload)
        except MissingField as e:
            errors.append(e)
        else:
            try:
                time_created = rfc3339.parse(raw_time)
            except ValueError as e:
                errors.append(ValueError(f"could not parse time_created: {e}"))

        try:
            id_ = rule.resolve_id(payload)
        except MissingField as e:
            errors.append(e)

        if errors:
            raise ExtractionFailure(event_type, errors)
        return id_, time_created

    def signature(self, headers: header_utils.HeaderMap) -> str:
        for name in (SIGNATURE_256_HEADER, LEGACY_SIGNATURE_HEADER):
            value = header_utils.first(headers, name)
            if value is not None:
                return value
        return ""

    def source(self, headers: header_utils.HeaderMap) -> str:
        if sources.is_mock(headers):
            return f"{self.provider}_mock"
        return self.provider
