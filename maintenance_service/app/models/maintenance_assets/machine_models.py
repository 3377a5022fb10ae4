import uuid
from sqlalchemy import Column, String, Integer, JSON, DateTime, func
from sqlalchemy.orm import relationship

from shared.core.database import Base, GUID


class MachineModel(Base):
    __tablename__ = "machine_models"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    company_id = Column(GUID, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    manufacturer = Column(String(100), nullable=False)
    brand = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    properties = Column(JSON, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    machines = relationship("Machine", back_populates="model")
