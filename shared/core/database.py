from sqlalchemy import Uuid, create_engine
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from shared.core.config import MAINTENANCE_DATABASE_URL, settings

Base = declarative_base()

# native uuid on Postgres, CHAR(32) hex on SQLite
GUID = UUID(as_uuid=True).with_variant(Uuid(as_uuid=True), "sqlite")


def create_maintenance_engine(url: str):
    if url.startswith("sqlite"):
        # single shared connection so in-memory databases survive across sessions
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=settings.POOL_SIZE,          # max idle connections
        max_overflow=settings.MAX_OVERFLOW,    # max temporary extra connections
        pool_timeout=30                        # wait time before failing
    )


maintenance_engine = create_maintenance_engine(MAINTENANCE_DATABASE_URL)
MaintenanceSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=maintenance_engine)


# Dependency
def get_maintenance_db():
    db = MaintenanceSessionLocal()
    try:
        yield db
    finally:
        db.close()
