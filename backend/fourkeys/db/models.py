from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class EventRaw(Base):
    __tablename__ = "events_raw"

    # One row per queue delivery; a redelivered message is not stored twice.
    msg_id = Column(String, primary_key=True)
    event_type = Column(String, nullable=False)
    id = Column(String, nullable=False)
    # ``metadata`` is reserved on declarative classes.
    metadata_ = Column("metadata", Text, nullable=False)
    time_created = Column(DateTime(timezone=True), nullable=False)
    signature = Column(String, nullable=False)
    source = Column(String, nullable=False)
