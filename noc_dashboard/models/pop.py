from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint, func

from noc_dashboard.database.base import Base


class Pop(Base):
    __tablename__ = "pops"
    __table_args__ = (UniqueConstraint("client", "filename"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    client = Column(String, nullable=False, index=True)
    filename = Column(String, nullable=False)  # slug of the title, e.g. "link-down.json"
    title = Column(String, nullable=False)
    category = Column(String, nullable=True)
    icon = Column(String, nullable=True)
    data = Column(Text, nullable=False)  # JSON-encoded procedure document
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)
