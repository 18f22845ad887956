# group_builder/infrastructure/models.py
"""
SQLAlchemy ORM models for saved configurations and persisted sessions.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, JSON, String, Text

from group_builder.infrastructure.db.session import Base


def now():
    return datetime.now(timezone.utc)


class GroupConfigurationRecord(Base):
    __tablename__ = "group_configurations"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, default="")
    adventure_id = Column(String(64), nullable=True, index=True)
    vendor_id = Column(String(64), nullable=True, index=True)
    group_count = Column(Integer, default=0)
    total_participants = Column(Integer, default=0)
    configuration_data = Column(JSON, default=dict)
    created_at = Column(DateTime(timezone=True), default=now)


class EngineStateRecord(Base):
    __tablename__ = "engine_states"

    session_key = Column(String(128), primary_key=True)
    state = Column(JSON, default=dict)
    updated_at = Column(DateTime(timezone=True), default=now, onupdate=now)
