from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from paddock.db.models.base import Base


class VoteResponse(Base):
    __tablename__ = "vote_responses"
    __table_args__ = (
        UniqueConstraint("vote_id", "user_id", name="uq_vote_responses_vote_user"),
        Index("idx_vote_responses_option", "option_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    vote_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("votes.id"), nullable=False)
    option_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("vote_options.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
