# app/router/space_sites/locations_router.py
from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_maintenance_db as get_db
from shared.core.schemas import BulkDeleteRequest, BulkDeleteResponse, MessageResponse, UserToken
from ...crud.space_sites import locations_crud as crud
from ...schemas.space_sites.locations_schemas import (
    LocationCreate, LocationNode, LocationRequest, LocationTreeRequest, LocationTreeResponse,
    LocationListResponse, LocationUpdate)

router = APIRouter(
    prefix="/api/locations",
    tags=["locations"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("", response_model=LocationListResponse)
def get_locations(
        params: LocationRequest = Depends(),
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_locations(db, current_user.company_id, params)


@router.get("/tree", response_model=LocationTreeResponse)
def get_location_tree(
        params: LocationTreeRequest = Depends(),
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_location_tree(db, current_user.company_id, params)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_locations(
        request: BulkDeleteRequest,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.bulk_delete_locations(db, current_user.company_id, request.ids)


@router.post("", response_model=LocationNode, status_code=status.HTTP_201_CREATED)
def create_location(
        location: LocationCreate,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.create_location(db, current_user.company_id, location)


@router.get("/{location_id}", response_model=LocationNode)
def get_location(
        location_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_location(db, current_user.company_id, location_id)


@router.get("/{location_id}/children", response_model=List[LocationNode])
def get_location_children(
        location_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_location_children(db, current_user.company_id, location_id)


@router.put("/{location_id}", response_model=LocationNode)
def update_location(
        location_id: UUID,
        location: LocationUpdate,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.update_location(db, current_user.company_id, location_id, location)


@router.delete("/{location_id}", response_model=MessageResponse)
def delete_location(
        location_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.delete_location(db, current_user.company_id, location_id)
