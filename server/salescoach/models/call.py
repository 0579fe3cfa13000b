from datetime import date
from typing import Optional

from sqlalchemy import JSON, Boolean, Date, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from salescoach.models.base import Base, TimestampMixin, UUIDMixin


class Call(Base, TimestampMixin):
    __tablename__ = "calls"

    call_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    agent_user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("agents.agent_user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    call_date: Mapped[date] = mapped_column(Date(), nullable=False, index=True)
    total_duration_seconds: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_inbound_call: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    agent_talk_percentage: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    customer_talk_percentage: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    total_turns: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    agent = relationship("Agent", back_populates="calls", lazy="selectin")
    transcript = relationship(
        "CallTranscript",
        back_populates="call",
        uselist=False,
        cascade="all, delete-orphan",
    )
    chunks = relationship(
        "TranscriptChunk",
        back_populates="call",
        cascade="all, delete-orphan",
        order_by="TranscriptChunk.chunk_index",
    )


class CallTranscript(Base, TimestampMixin):
    __tablename__ = "call_transcripts"

    call_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("calls.call_id", ondelete="CASCADE"),
        primary_key=True,
    )
    full_transcript: Mapped[str] = mapped_column(Text, nullable=False, default="")

    call = relationship("Call", back_populates="transcript")


class TranscriptChunk(Base, UUIDMixin):
    """A slice of a transcript with its embedding, used by semantic search."""

    __tablename__ = "transcript_chunks"
    __table_args__ = (UniqueConstraint("call_id", "chunk_index"),)

    call_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("calls.call_id", ondelete="CASCADE"),
        nullable=False,
    )
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    embedding: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    call = relationship("Call", back_populates="chunks")
