from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from propertyhub.db.base import Base


class Customer(Base):
    """Tenant or owner living in a building run by a property manager"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    property_manager_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, comment="Portal login, optional")

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50))
    building_name = Column(String(200))
    unit_number = Column(String(50))
    address = Column(String(500))

    # ACTIVE, INACTIVE
    status = Column(String(20), nullable=False, default="ACTIVE")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    property_manager = relationship("User", foreign_keys=[property_manager_id])
    user = relationship("User", foreign_keys=[user_id])

    def __repr__(self):
        return f"<Customer {self.email}>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
