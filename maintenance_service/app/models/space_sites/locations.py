# app/models/space_sites/locations.py
import uuid
from sqlalchemy import Boolean, Column, String, Integer, ForeignKey, DateTime, func, UniqueConstraint
from sqlalchemy.orm import relationship

from shared.core.database import Base, GUID


class Location(Base):
    __tablename__ = "locations"
    __table_args__ = (UniqueConstraint(
        'company_id', 'internal_code', name='uix_location_company_code'),)

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    company_id = Column(GUID, nullable=False, index=True)
    internal_code = Column(String(64), nullable=False,
                           default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    description = Column(String(500))
    icon = Column(String(50))
    parent_id = Column(GUID, ForeignKey(
        "locations.id", ondelete="RESTRICT"), nullable=True, index=True)
    path = Column(String, nullable=False, default="")
    level = Column(Integer, nullable=False, default=0)
    is_leaf = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    # Relationships
    parent = relationship("Location", remote_side=[id], back_populates="children")
    children = relationship("Location", back_populates="parent")
    machines = relationship("Machine", back_populates="location_ref")
