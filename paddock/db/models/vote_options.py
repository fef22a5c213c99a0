from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, Index, SmallInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from paddock.db.models.base import Base


class VoteOption(Base):
    __tablename__ = "vote_options"
    __table_args__ = (Index("idx_vote_options_vote", "vote_id", "position"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    vote_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("votes.id", ondelete="CASCADE"),
        nullable=False,
    )
    label: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(SmallInteger, nullable=False)
