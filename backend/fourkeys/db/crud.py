from datetime import UTC

import sqlalchemy.exc
from sqlalchemy.orm import Session, sessionmaker

from fourkeys.core.errors import SinkFailure
from fourkeys.db import models
from fourkeys.schemas.events import NormalizedEvent


def insert_event(db: Session, event: NormalizedEvent) -> bool:
    """Insert ``event``; return False when its message was already stored."""
    row = models.EventRaw(
        msg_id=event.msg_id,
        event_type=event.event_type,
        id=event.id,
        metadata_=event.metadata,
        # Not every backend keeps the offset; store the UTC instant.
        time_created=event.time_created.astimezone(UTC),
        signature=event.signature,
        source=event.source,
    )
    db.add(row)
    try:
        db.commit()
    except sqlalchemy.exc.IntegrityError:
        db.rollback()
        return False
    return True


def get_event(db: Session, msg_id: str) -> models.EventRaw | None:
    return db.query(models.EventRaw).filter_by(msg_id=msg_id).first()


class SqlEventSink:
    """Analytics sink backed by the ``events_raw`` table."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def insert(self, event: NormalizedEvent) -> bool:
        try:
            with self.session_factory() as db:
                return insert_event(db, event)
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise SinkFailure(f"error inserting into events_raw: {e}") from e

    def create_schema(self) -> None:
        models.Base.metadata.create_all(self.session_factory.kw["bind"])
