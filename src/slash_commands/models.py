"""Slash command integration models."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.slash_commands.database import Base


class IntegrationConfig(Base):
    """Per-project Mattermost slash command configuration."""

    __tablename__ = "mattermost_slash_commands"

    project_id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=False,
    )
    token: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
    )
    active: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    team_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    def __repr__(self) -> str:
        return f"<IntegrationConfig(project_id={self.project_id}, active={self.active})>"
