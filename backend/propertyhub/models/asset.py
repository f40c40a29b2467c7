from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base

CONDITION_DISPLAY = {
    "NEW": "New",
    "GOOD": "Good",
    "FAIR": "Fair",
    "POOR": "Poor",
}


class Asset(Base):
    """Company asset with SARS wear-and-tear details"""
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    category = Column(String(100), nullable=False, index=True)
    serial_number = Column(String(100))

    purchase_date = Column(DateTime, nullable=False, index=True)
    purchase_price = Column(DECIMAL(12, 2), nullable=False, default=0)
    current_value = Column(DECIMAL(12, 2), nullable=False, default=0)

    condition = Column(String(20), nullable=False, default="GOOD")
    location = Column(String(200))
    notes = Column(Text)
    images = Column(JSON, default=list)

    # Depreciation
    useful_life_years = Column(Integer, comment="Years over which the asset is written off")
    residual_value = Column(DECIMAL(12, 2), default=0)
    sars_wear_and_tear_category = Column(String(50), comment="SARS Interpretation Note 47 class")
    accumulated_depreciation = Column(DECIMAL(12, 2), default=0)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<Asset {self.name}: R{self.current_value}>"

    @property
    def condition_display(self) -> str:
        return CONDITION_DISPLAY.get(self.condition, self.condition)
