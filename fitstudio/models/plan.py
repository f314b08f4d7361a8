from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from fitstudio.db.database import Base
from fitstudio.models.enums import PlanKind


class Plan(Base):
    """Diet or workout plan.

    Rows with ``is_template=True`` are reusable templates. Rows with
    ``is_template=False`` are assignments: copies bound to one client, with
    ``template_id`` pointing back at the template they were made from.
    ``entries`` holds the week-tagged meals or exercises.
    """

    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(20), nullable=False, default=PlanKind.DIET.value, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=True)
    target_calories = Column(Float, nullable=True)
    protein = Column(Float, nullable=True)
    carbs = Column(Float, nullable=True)
    fats = Column(Float, nullable=True)
    entries = Column(JSON, nullable=False, default=list)
    allergens = Column(JSON, nullable=False, default=list)
    is_template = Column(Boolean, nullable=False, default=True, index=True)
    selected_day = Column(String(20), nullable=True)
    template_id = Column(Integer, ForeignKey("plans.id", ondelete="SET NULL"), nullable=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=True, index=True)
    cloned_from_id = Column(Integer, ForeignKey("plans.id", ondelete="SET NULL"), nullable=True)
    assigned_count = Column(Integer, nullable=False, default=0)
    times_cloned = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("Client")
