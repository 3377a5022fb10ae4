import uuid
from sqlalchemy import Column, String, Date, JSON, DateTime, ForeignKey, Table, func
from sqlalchemy.orm import relationship

from shared.core.database import Base, GUID


maintenance_range_operations = Table(
    "maintenance_range_operations",
    Base.metadata,
    Column("maintenance_range_id", GUID, ForeignKey(
        "maintenance_ranges.id", ondelete="CASCADE"), primary_key=True),
    Column("operation_id", GUID, ForeignKey(
        "operations.id", ondelete="CASCADE"), primary_key=True),
)


class MaintenanceRange(Base):
    __tablename__ = "maintenance_ranges"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    company_id = Column(GUID, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500))
    type = Column(String(16), nullable=False)

    # recurrence is descriptive metadata only
    frequency = Column(String(16), nullable=True)
    start_date = Column(Date, nullable=True)
    start_time = Column(String(5), nullable=True)
    days_of_week = Column(JSON, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    operations = relationship("Operation", secondary=maintenance_range_operations)
    machine_links = relationship(
        "MachineMaintenanceRange", back_populates="maintenance_range",
        cascade="all, delete-orphan")

    @property
    def operation_ids(self):
        return [op.id for op in self.operations]
