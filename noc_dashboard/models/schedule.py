from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, UniqueConstraint, func

from noc_dashboard.database.base import Base


class Schedule(Base):
    """One analyst on one shift on one day."""

    __tablename__ = "schedules"
    __table_args__ = (UniqueConstraint("date", "shift_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False, index=True)
    shift_id = Column(Integer, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False, index=True)
    analyst_id = Column(Integer, ForeignKey("analysts.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)
