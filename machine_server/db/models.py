"""SQLAlchemy ORM models for the machine store."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Integer,
    Text,
    Uuid,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from machine_server.db.base import Base

HOST_DOCUMENT_TYPE = JSONB().with_variant(JSON(), "sqlite")  # type: ignore[no-untyped-call]


class MachineHost(Base):
    __tablename__ = "machine_host"
    __table_args__ = (CheckConstraint("length(name) > 0", name="machine_host_name_not_empty"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    driver_name: Mapped[str] = mapped_column(Text, nullable=False)
    config_version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=3,
        server_default=text("3"),
    )
    ssh_client_type: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="external",
        server_default=text("'external'"),
    )
    driver_config: Mapped[dict[str, Any]] = mapped_column(
        HOST_DOCUMENT_TYPE,
        nullable=False,
        default=dict,
    )
    host_options: Mapped[dict[str, Any]] = mapped_column(
        HOST_DOCUMENT_TYPE,
        nullable=False,
        default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
