import uuid
from sqlalchemy import Column, String, Integer, JSON, DateTime, ForeignKey, Table, func
from sqlalchemy.orm import relationship

from shared.core.database import Base, GUID


machine_operations = Table(
    "machine_operations",
    Base.metadata,
    Column("machine_id", GUID, ForeignKey(
        "machines.id", ondelete="CASCADE"), primary_key=True),
    Column("operation_id", GUID, ForeignKey(
        "operations.id", ondelete="CASCADE"), primary_key=True),
)


class MachineMaintenanceRange(Base):
    """Ordered link between a machine and a maintenance range."""
    __tablename__ = "machine_maintenance_ranges"

    machine_id = Column(GUID, ForeignKey(
        "machines.id", ondelete="CASCADE"), primary_key=True)
    maintenance_range_id = Column(GUID, ForeignKey(
        "maintenance_ranges.id", ondelete="CASCADE"), primary_key=True)
    position = Column(Integer, nullable=False, default=0)

    machine = relationship("Machine", back_populates="range_links")
    maintenance_range = relationship("MaintenanceRange", back_populates="machine_links")


class Machine(Base):
    __tablename__ = "machines"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    company_id = Column(GUID, nullable=False, index=True)
    model_id = Column(GUID, ForeignKey(
        "machine_models.id", ondelete="RESTRICT"), nullable=False)
    location_id = Column(GUID, ForeignKey(
        "locations.id", ondelete="SET NULL"), nullable=True, index=True)
    location = Column(String(200), nullable=False)
    description = Column(String(500))
    properties = Column(JSON, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    model = relationship("MachineModel", back_populates="machines")
    location_ref = relationship("Location", back_populates="machines")
    operations = relationship("Operation", secondary=machine_operations)
    range_links = relationship(
        "MachineMaintenanceRange", back_populates="machine",
        order_by="MachineMaintenanceRange.position",
        cascade="all, delete-orphan")

    @property
    def maintenance_ranges(self):
        return [link.maintenance_range for link in self.range_links]

    @property
    def maintenance_range_ids(self):
        return [mr.id for mr in self.maintenance_ranges]

    @property
    def operation_ids(self):
        return [op.id for op in self.operations]
