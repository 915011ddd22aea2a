"""
Game table: one row per sign-up event.

Key design decisions:
- roster and waitlist live in the same row as JSON arrays, so a single
  conditional UPDATE moves a principal between them atomically
- `version` column enables optimistic locking for concurrent join/drop
- Composite index on (category, start_time) serves the category listing
"""

from sqlalchemy import JSON, BigInteger, CheckConstraint, Column, Index, Integer, String

from signups.db.base import Base, TimestampMixin


class GameRecord(Base, TimestampMixin):
    __tablename__ = "games"

    id = Column(String(64), primary_key=True)
    owner = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    location = Column(String(255), nullable=False)
    start_time = Column(BigInteger, nullable=False)  # epoch seconds
    duration_mins = Column(Integer, nullable=False)
    num_teams = Column(Integer, nullable=False)
    team_size = Column(Integer, nullable=False)
    sign_up_fee_cents = Column(Integer, nullable=False, default=0)
    split_fee_cents = Column(Integer, nullable=False, default=0)
    roster = Column(JSON, nullable=False, default=list)
    waitlist = Column(JSON, nullable=False, default=list)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("version > 0", name="check_game_version_positive"),
        Index("ix_games_category_start_time", "category", "start_time"),
    )

    def __repr__(self) -> str:
        return f"<GameRecord(id={self.id}, name={self.name}, version={self.version})>"
