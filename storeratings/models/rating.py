"""Rating model.

One row per (user, store). The composite unique constraint is the single
point of serialization for concurrent submissions of the same pair.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from storeratings.stores.postgres import Base

SCORE_MIN = 1
SCORE_MAX = 5
COMMENT_MAX_LENGTH = 1000

UNIQUE_USER_STORE = "uq_ratings_user_store"
CHECK_SCORE_RANGE = "ck_ratings_score_range"


class Rating(Base):
    """A user's score for a store."""

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "store_id", name=UNIQUE_USER_STORE),
        CheckConstraint(f"score >= {SCORE_MIN} AND score <= {SCORE_MAX}", name=CHECK_SCORE_RANGE),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Relations
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id", ondelete="CASCADE"), index=True)

    score: Mapped[int] = mapped_column(Integer)
    comment: Mapped[str | None] = mapped_column(Text)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Rating {self.id} user={self.user_id} store={self.store_id} score={self.score}>"
