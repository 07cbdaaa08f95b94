from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class NormalizedEvent(BaseModel):
    """Canonical row handed to the analytics sink."""

    model_config = ConfigDict(frozen=True)

    event_type: str
    id: str
    metadata: str = Field(..., description="Raw webhook body, verbatim")
    time_created: datetime
    signature: str
    msg_id: str
    source: str


class Skip(BaseModel):
    """The delivery is valid but carries nothing worth recording."""

    model_config = ConfigDict(frozen=True)

    event_type: str
    reason: str
