import uuid
from sqlalchemy import Column, String, Integer, DateTime, func

from shared.core.database import Base, GUID


class Operation(Base):
    __tablename__ = "operations"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    company_id = Column(GUID, nullable=False, index=True)
    internal_code = Column(String(64), nullable=False,
                           default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)
    type = Column(String(16), nullable=False)
    order = Column("display_order", Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())
