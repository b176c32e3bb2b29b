from sqlalchemy import Column, DateTime, Integer, String, Text

from noc_dashboard.database.base import Base


class SyncLog(Base):
    __tablename__ = "sync_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sync_type = Column(String, nullable=False, default="full")
    status = Column(String, nullable=False)  # running, completed, failed
    records_synced = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
