import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.core.config import settings
from shared.core.database import maintenance_engine, Base
from shared.core.log_config import setup_logging
from shared.helpers.exception_handler import setup_exception_handlers

from .models.space_sites import locations
from .models.maintenance_assets import machine_models, machines, maintenance_ranges, operations, work_orders
from .router.space_sites import locations_router
from .router.maintenance_assets import (
    machine_models_router, machines_router, maintenance_ranges_router, operations_router, work_orders_router)

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Maintenance Service API")

setup_exception_handlers(app)

# Create all tables
Base.metadata.create_all(bind=maintenance_engine)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(locations_router.router)
app.include_router(machine_models_router.router)
app.include_router(machines_router.router)
app.include_router(operations_router.router)
app.include_router(maintenance_ranges_router.router)
app.include_router(work_orders_router.router)


@app.get("/health")
def health():
    return {"status": "ok"}


logger.info("Maintenance service started")
