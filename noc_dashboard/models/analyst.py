from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from noc_dashboard.database.base import Base


class Analyst(Base):
    __tablename__ = "analysts"

    # Assigned by the cloud node, never generated locally
    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)
