# app/models/maintenance_assets/work_orders.py
import uuid
from sqlalchemy import Column, String, Text, JSON, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship

from shared.core.database import Base, GUID


class WorkOrder(Base):
    __tablename__ = "work_orders"
    __table_args__ = (UniqueConstraint(
        'company_id', 'custom_code', name='uix_work_order_company_code'),)

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    company_id = Column(GUID, nullable=False, index=True)
    custom_code = Column(String(64), nullable=True)
    location_id = Column(GUID, ForeignKey(
        "locations.id", ondelete="SET NULL"), nullable=True)
    work_order_location_id = Column(GUID, ForeignKey(
        "locations.id", ondelete="SET NULL"), nullable=True)
    type = Column(String(16), nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    description = Column(Text, nullable=False)
    maintenance_description = Column(Text)
    scheduled_date = Column(DateTime(timezone=True))
    completed_date = Column(DateTime(timezone=True))
    assigned_to = Column(String(200))
    notes = Column(Text)

    # embedded documents, stored as JSON and replaced as a whole on write
    machines = Column(JSON, nullable=False, default=list)
    filled_operations = Column(JSON, nullable=False, default=list)
    labor = Column(JSON, nullable=False, default=list)
    materials = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)
    operator_signature = Column(JSON, nullable=True)
    client_signature = Column(JSON, nullable=True)
    properties = Column(JSON, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    location = relationship("Location", foreign_keys=[location_id])
    work_order_location = relationship("Location", foreign_keys=[work_order_location_id])
