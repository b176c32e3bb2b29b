from sqlalchemy import Column, DateTime, String, Text, func

from noc_dashboard.database.base import Base


class ConfigEntry(Base):
    __tablename__ = "config"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)
