class IngestionError(Exception):
    pass


class TransportError(IngestionError):
    """Body unreadable or envelope undecodable; redelivery may help."""


class AuthenticationFailure(IngestionError):
    """Signature mismatch or unauthorized source."""


class MissingField(IngestionError):
    """A canonical field could not be resolved from any of its candidates."""

    def __init__(self, field: str, causes: list[Exception]):
        self.field = field
        self.causes = list(causes)
        detail = "; ".join(str(c) for c in self.causes)
        super().__init__(f"could not find {field}: {detail}" if detail else f"could not find {field}")


class ExtractionFailure(IngestionError):
    """A recognized event whose required fields are absent or malformed.

    Every diagnostic collected while extracting the record is kept so that
    all of them can be reported in a single log line.
    """

    def __init__(self, event_type: str, errors: list[Exception]):
        self.event_type = event_type
        self.errors = list(errors)
        super().__init__("\n".join(str(e) for e in self.errors))


class UnsupportedEventType(IngestionError):
    def __init__(self, event_type: str):
        self.event_type = event_type
        super().__init__(f"event type {event_type} is not supported")


class SinkFailure(IngestionError):
    pass
