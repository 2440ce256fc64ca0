# src/heartline/models/swipe.py
"""Directed swipe records: likes and passes."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from heartline.db.session import Base
from heartline.db.time import utcnow


class Like(Base):
    """A like from ``liker_id`` toward ``liked_id``.

    One row per ordered pair. Rows disappear on explicit unlike or when
    either user is deleted.
    """

    __tablename__ = "user_likes"
    __table_args__ = (
        UniqueConstraint("liker_id", "liked_id", name="uq_user_likes_liker_liked"),
        CheckConstraint("liker_id <> liked_id", name="ck_user_likes_not_self"),
        Index("ix_user_likes_liked_id", "liked_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    liker_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    liked_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class Pass(Base):
    """A pass from ``passer_id`` on ``passed_id``; independent of likes."""

    __tablename__ = "user_passes"
    __table_args__ = (
        UniqueConstraint("passer_id", "passed_id", name="uq_user_passes_passer_passed"),
        CheckConstraint("passer_id <> passed_id", name="ck_user_passes_not_self"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    passer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    passed_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
