"""
Vote model - one reviewer's scoring of one document.

Votes are append-only: a second vote by the same voter on the same document
is rejected by the (document_id, voter_id) unique constraint.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wikiflow.kernel.models.base import Base, generate_uuid, utcnow

if TYPE_CHECKING:
    from wikiflow.kernel.models.document import Document


MIN_SCORE = 1
MAX_SCORE = 10

UNIQUE_VOTE_CONSTRAINT = "uq_vote_document_voter"


class Vote(Base):
    """A reviewer's two-axis score for a document."""

    __tablename__ = "votes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    voter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    document_quality_score: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    code_readability_score: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    comments: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    voted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    document: Mapped["Document"] = relationship(
        "Document",
        back_populates="votes",
        lazy="raise",
    )

    __table_args__ = (
        UniqueConstraint("document_id", "voter_id", name=UNIQUE_VOTE_CONSTRAINT),
        CheckConstraint(
            f"document_quality_score BETWEEN {MIN_SCORE} AND {MAX_SCORE}",
            name="ck_vote_document_quality_range",
        ),
        CheckConstraint(
            f"code_readability_score BETWEEN {MIN_SCORE} AND {MAX_SCORE}",
            name="ck_vote_code_readability_range",
        ),
    )

    def __repr__(self) -> str:
        return f"<Vote {self.voter_id} on {self.document_id}>"
