# app/crud/space_sites/locations_crud.py
import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from shared.core.schemas import CommonQueryParams
from shared.helpers.json_response_helper import error_response, not_found_response
from shared.helpers.pagination_helper import paginate, paginate_list
from shared.utils.app_status_code import AppStatusCode
from ...models.maintenance_assets.machines import Machine
from ...models.space_sites.locations import Location
from ...schemas.space_sites.locations_schemas import (
    LocationCreate, LocationOut, LocationRequest, LocationTreeRequest, LocationUpdate)
from ...services.location_tree import build_location_tree, build_path, flatten_location_tree, is_descendant

logger = logging.getLogger(__name__)

MAX_TREE_LIMIT = 100


# ---------------- Helpers ----------------

def get_location_or_404(db: Session, company_id: UUID, location_id: UUID) -> Location:
    location = db.query(Location).filter(
        Location.id == location_id,
        Location.company_id == company_id
    ).first()
    if not location:
        return not_found_response("Location")
    return location


def location_row(location: Location) -> Dict:
    return LocationOut.model_validate(location).model_dump()


def _children_counts(db: Session, company_id: UUID, ids: List[UUID]) -> Dict[UUID, int]:
    if not ids:
        return {}
    rows = db.query(Location.parent_id, func.count(Location.id)).filter(
        Location.company_id == company_id,
        Location.parent_id.in_(ids)
    ).group_by(Location.parent_id).all()
    return {parent_id: count for parent_id, count in rows}


def _machines_by_location(db: Session, company_id: UUID, ids: List[UUID]) -> Dict[UUID, List[Machine]]:
    if not ids:
        return {}
    machines = db.query(Machine).options(joinedload(Machine.model)).filter(
        Machine.company_id == company_id,
        Machine.location_id.in_(ids)
    ).all()
    grouped: Dict[UUID, List[Machine]] = {}
    for machine in machines:
        grouped.setdefault(machine.location_id, []).append(machine)
    return grouped


def _node_rows(db: Session, company_id: UUID, locations: List[Location]) -> List[Dict]:
    ids = [loc.id for loc in locations]
    children = _children_counts(db, company_id, ids)
    machines = _machines_by_location(db, company_id, ids)

    rows = []
    for loc in locations:
        loc_machines = machines.get(loc.id, [])
        row = location_row(loc)
        row.update({
            "children_count": children.get(loc.id, 0),
            "has_children": children.get(loc.id, 0) > 0,
            "machines_count": len(loc_machines),
            "machines": [{
                "id": m.id,
                "location": m.location,
                "description": m.description,
                "model_name": m.model.name if m.model else None,
            } for m in loc_machines],
        })
        rows.append(row)
    return rows


def _parent_map(db: Session, company_id: UUID) -> Dict[str, Optional[str]]:
    rows = db.query(Location.id, Location.parent_id).filter(
        Location.company_id == company_id).all()
    return {str(loc_id): (str(parent_id) if parent_id else None) for loc_id, parent_id in rows}


def _ensure_unique_name(db: Session, company_id: UUID, name: str, parent_id: Optional[UUID],
                        exclude_id: Optional[UUID] = None):
    query = db.query(Location).filter(
        Location.company_id == company_id,
        Location.parent_id == parent_id if parent_id else Location.parent_id.is_(None),
        func.lower(Location.name) == name.lower()
    )
    if exclude_id:
        query = query.filter(Location.id != exclude_id)
    if query.first():
        return error_response(
            message=f"A location named '{name}' already exists at this level",
            status_code=AppStatusCode.DUPLICATE_ADD_ERROR
        )


def _ensure_unique_code(db: Session, company_id: UUID, internal_code: str,
                        exclude_id: Optional[UUID] = None):
    query = db.query(Location).filter(
        Location.company_id == company_id,
        Location.internal_code == internal_code
    )
    if exclude_id:
        query = query.filter(Location.id != exclude_id)
    if query.first():
        return error_response(
            message=f"Internal code '{internal_code}' is already in use",
            status_code=AppStatusCode.DUPLICATE_ADD_ERROR
        )


def _refresh_leaf(db: Session, location: Optional[Location]):
    if location is None:
        return
    has_children = db.query(Location.id).filter(
        Location.parent_id == location.id).first() is not None
    location.is_leaf = not has_children


def _relabel_machines(location: Location, old_path: str):
    # labels still showing the old path follow the location
    for machine in location.machines:
        if machine.location == old_path:
            machine.location = location.path


def _rebuild_subtree(location: Location):
    """Recompute path and level below a renamed or moved location."""
    for child in location.children:
        old_path = child.path
        child.path = build_path(location.path, child.name)
        child.level = location.level + 1
        _relabel_machines(child, old_path)
        _rebuild_subtree(child)


# ---------------- Listing ----------------

def get_locations(db: Session, company_id: UUID, params: LocationRequest):
    if params.include_children or params.flat:
        locations = db.query(Location).filter(
            Location.company_id == company_id).order_by(Location.path).all()
        rows = _node_rows(db, company_id, locations)

        if params.parent_id:
            get_location_or_404(db, company_id, params.parent_id)
            parent_map = _parent_map(db, company_id)
            rows = [r for r in rows
                    if str(r["id"]) != str(params.parent_id)
                    and is_descendant(params.parent_id, r["id"], parent_map)]

        if params.search:
            term = params.search.lower()
            rows = [r for r in rows if term in r["name"].lower() or term in r["path"].lower()]

        if params.flat:
            return paginate_list(flatten_location_tree(rows), params)
        return paginate_list(build_location_tree(rows), params)

    query = db.query(Location).filter(Location.company_id == company_id)
    if params.parent_id:
        query = query.filter(Location.parent_id == params.parent_id)
    elif params.root_only:
        query = query.filter(Location.parent_id.is_(None))
    if params.search:
        term = f"%{params.search}%"
        query = query.filter(Location.name.ilike(term) | Location.path.ilike(term))

    page = paginate(query, params, order_by=Location.path)
    page["items"] = _node_rows(db, company_id, page["items"])
    return page


def get_location_tree(db: Session, company_id: UUID, params: LocationTreeRequest):
    offset = max(params.offset or 0, 0)
    limit = min(max(params.limit or 1, 1), MAX_TREE_LIMIT)

    query = db.query(Location).filter(Location.company_id == company_id)
    if params.search:
        query = query.filter(Location.name.ilike(f"%{params.search}%"))
    else:
        query = query.filter(Location.parent_id.is_(None))

    total = query.count()
    locations = query.order_by(Location.name).offset(offset).limit(limit).all()

    return {
        "locations": _node_rows(db, company_id, locations),
        "total_items": total,
        "has_more": offset + len(locations) < total,
        "offset": offset,
        "limit": limit,
    }


def get_location_children(db: Session, company_id: UUID, location_id: UUID):
    get_location_or_404(db, company_id, location_id)
    children = db.query(Location).filter(
        Location.company_id == company_id,
        Location.parent_id == location_id
    ).order_by(Location.name).all()
    return _node_rows(db, company_id, children)


def get_location(db: Session, company_id: UUID, location_id: UUID):
    location = get_location_or_404(db, company_id, location_id)
    return _node_rows(db, company_id, [location])[0]


# ---------------- Create / Update ----------------

def create_location(db: Session, company_id: UUID, data: LocationCreate):
    parent = None
    if data.parent_id:
        parent = db.query(Location).filter(
            Location.id == data.parent_id,
            Location.company_id == company_id
        ).first()
        if not parent:
            return error_response(
                message="Parent location not found",
                status_code=AppStatusCode.INVALID_INPUT
            )

    _ensure_unique_name(db, company_id, data.name, data.parent_id)
    if data.internal_code:
        _ensure_unique_code(db, company_id, data.internal_code)

    location = Location(
        company_id=company_id,
        name=data.name,
        description=data.description,
        icon=data.icon,
        parent_id=data.parent_id,
        path=build_path(parent.path if parent else None, data.name),
        level=parent.level + 1 if parent else 0,
        is_leaf=True,
    )
    if data.internal_code:
        location.internal_code = data.internal_code
    db.add(location)

    if parent:
        parent.is_leaf = False

    db.commit()
    db.refresh(location)
    logger.info("Created location %s (%s)", location.id, location.path)
    return get_location(db, company_id, location.id)


def update_location(db: Session, company_id: UUID, location_id: UUID, data: LocationUpdate):
    location = get_location_or_404(db, company_id, location_id)
    changes = data.model_dump(exclude_unset=True)

    new_parent_id = changes.get("parent_id", location.parent_id)
    new_name = changes.get("name") or location.name
    old_parent = location.parent

    new_parent = None
    if new_parent_id:
        if str(new_parent_id) == str(location.id):
            return error_response(
                message="A location cannot be its own parent",
                status_code=AppStatusCode.INVALID_INPUT
            )
        new_parent = db.query(Location).filter(
            Location.id == new_parent_id,
            Location.company_id == company_id
        ).first()
        if not new_parent:
            return error_response(
                message="Parent location not found",
                status_code=AppStatusCode.INVALID_INPUT
            )
        if is_descendant(location.id, new_parent_id, _parent_map(db, company_id)):
            logger.warning("Rejected move of location %s under its descendant %s",
                           location.id, new_parent_id)
            return error_response(
                message="A location cannot be moved under one of its descendants",
                status_code=AppStatusCode.INVALID_INPUT
            )

    if new_name != location.name or str(new_parent_id) != str(location.parent_id):
        _ensure_unique_name(db, company_id, new_name, new_parent_id, exclude_id=location.id)
    if changes.get("internal_code") and changes["internal_code"] != location.internal_code:
        _ensure_unique_code(db, company_id, changes["internal_code"], exclude_id=location.id)

    for field in ("description", "icon"):
        if field in changes:
            setattr(location, field, changes[field])
    if changes.get("internal_code"):
        location.internal_code = changes["internal_code"]

    location.name = new_name
    location.parent_id = new_parent_id
    location.parent = new_parent
    old_path = location.path
    location.path = build_path(new_parent.path if new_parent else None, new_name)
    location.level = new_parent.level + 1 if new_parent else 0
    _relabel_machines(location, old_path)
    _rebuild_subtree(location)

    if new_parent:
        new_parent.is_leaf = False
    db.flush()
    if old_parent is not None and old_parent is not new_parent:
        _refresh_leaf(db, old_parent)

    db.commit()
    db.refresh(location)
    return get_location(db, company_id, location.id)


# ---------------- Delete ----------------

def delete_location(db: Session, company_id: UUID, location_id: UUID):
    location = get_location_or_404(db, company_id, location_id)

    children_count = db.query(Location).filter(Location.parent_id == location.id).count()
    machines_count = db.query(Machine).filter(Machine.location_id == location.id).count()
    if children_count or machines_count:
        logger.warning("Location %s still has %s children and %s machines",
                       location.id, children_count, machines_count)
        return error_response(
            message="Cannot delete a location that has child locations or machines",
            status_code=AppStatusCode.IN_USE_CONFLICT,
            data={"children_count": children_count, "machines_count": machines_count}
        )

    parent = location.parent
    db.delete(location)
    db.flush()
    _refresh_leaf(db, parent)
    db.commit()
    logger.info("Deleted location %s", location_id)
    return {"message": "Location deleted successfully"}


def bulk_delete_locations(db: Session, company_id: UUID, ids: List[UUID]):
    ids = list(dict.fromkeys(ids))
    if not ids:
        return error_response(message="No IDs provided", status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR)

    locations = db.query(Location).filter(
        Location.id.in_(ids), Location.company_id == company_id).all()
    if len(locations) != len(ids):
        return error_response(
            message="Some locations not found",
            status_code=AppStatusCode.NOT_FOUND
        )

    children_count = db.query(Location).filter(
        Location.company_id == company_id, Location.parent_id.in_(ids)).count()
    machines_count = db.query(Machine).filter(
        Machine.company_id == company_id, Machine.location_id.in_(ids)).count()
    if children_count or machines_count:
        return error_response(
            message="Cannot delete locations that have child locations or machines",
            status_code=AppStatusCode.IN_USE_CONFLICT,
            data={"children_count": children_count, "machines_count": machines_count}
        )

    parents = {loc.parent_id for loc in locations if loc.parent_id}
    for location in locations:
        db.delete(location)
    db.flush()
    if parents:
        for parent in db.query(Location).filter(Location.id.in_(parents)).all():
            _refresh_leaf(db, parent)
    db.commit()

    logger.info("Bulk deleted %s locations", len(locations))
    return {
        "message": f"{len(locations)} locations deleted successfully",
        "deleted_count": len(locations),
    }
