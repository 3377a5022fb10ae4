from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_maintenance_db as get_db
from shared.core.schemas import BulkDeleteRequest, BulkDeleteResponse, Lookup, MessageResponse, UserToken
from ...crud.maintenance_assets import maintenance_ranges_crud as crud
from ...enum.maintenance_enum import MaintenanceType
from ...schemas.maintenance_assets.maintenance_ranges_schemas import (
    MaintenanceRangeCreate, MaintenanceRangeListResponse, MaintenanceRangeOut, MaintenanceRangeRequest,
    MaintenanceRangeUpdate)

router = APIRouter(
    prefix="/api/maintenance-ranges",
    tags=["maintenance-ranges"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("", response_model=MaintenanceRangeListResponse)
def get_maintenance_ranges(
        params: MaintenanceRangeRequest = Depends(),
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_maintenance_ranges(db, current_user.company_id, params)


@router.get("/lookup", response_model=List[Lookup])
def maintenance_range_lookup(
        type: Optional[MaintenanceType] = Query(None),
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.maintenance_range_lookup(db, current_user.company_id, type)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_maintenance_ranges(
        request: BulkDeleteRequest,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.bulk_delete_maintenance_ranges(db, current_user.company_id, request.ids)


@router.post("", response_model=MaintenanceRangeOut, status_code=status.HTTP_201_CREATED)
def create_maintenance_range(
        maintenance_range: MaintenanceRangeCreate,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.create_maintenance_range(db, current_user.company_id, maintenance_range)


@router.get("/{range_id}", response_model=MaintenanceRangeOut)
def get_maintenance_range(
        range_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_maintenance_range(db, current_user.company_id, range_id)


@router.put("/{range_id}", response_model=MaintenanceRangeOut)
def update_maintenance_range(
        range_id: UUID,
        maintenance_range: MaintenanceRangeUpdate,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.update_maintenance_range(db, current_user.company_id, range_id, maintenance_range)


@router.delete("/{range_id}", response_model=MessageResponse)
def delete_maintenance_range(
        range_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.delete_maintenance_range(db, current_user.company_id, range_id)
