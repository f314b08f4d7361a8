from sqlalchemy import Boolean, Column, Float, Integer, String, Text
from sqlalchemy.orm import relationship

from fitstudio.db.database import Base


class Package(Base):
    """Subscription tier. Reference data, created out of band."""

    __tablename__ = "packages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False, default=0.0)
    diet_plan_access = Column(Boolean, nullable=False, default=False)
    live_group_training_access = Column(Boolean, nullable=False, default=False)
    live_sessions_per_month = Column(Integer, nullable=False, default=0)

    clients = relationship("Client", back_populates="package")
