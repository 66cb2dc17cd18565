# Property listing endpoints.
# Anyone can search available listings; landlords create listings and only the owner may change or delete one.
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from .. import models, schemas
from ..rate_limit import rate_limit
from ..storage import SqlStorage, get_storage
from .auth import get_current_user, require_landlord

# Router namespace for property APIs
router = APIRouter()


def _owned_property(store: SqlStorage, property_id: int, user: models.User) -> models.Property:
    prop = store.get_property(property_id)
    if not prop:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")
    if prop.landlord_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not owner of property")
    return prop


@router.get("/properties", response_model=List[schemas.PropertyRead])
def list_properties(
    location: Optional[str] = Query(None, max_length=200),
    rooms: Optional[int] = Query(None, ge=1),
    max_price: Optional[Decimal] = Query(None, ge=0, alias="maxPrice"),
    landlord_id: Optional[int] = Query(None, ge=1, alias="landlordId"),
    store: SqlStorage = Depends(get_storage),
):
    """
    Search available listings, newest first.

    Filters (all optional, combined with AND):
    - location: case-insensitive substring of address, city or postal code
    - rooms: exact room count
    - maxPrice: upper bound on price, inclusive
    - landlordId: listings of one landlord
    """
    location = location.strip() if location else None
    return store.search_properties(
        location=location or None,
        rooms=rooms,
        max_price=max_price,
        landlord_id=landlord_id,
    )


@router.get("/properties/mine", response_model=List[schemas.PropertyRead])
def list_my_properties(store: SqlStorage = Depends(get_storage), user: models.User = Depends(require_landlord)):
    """Landlord dashboard: every listing the caller owns, including unavailable ones."""
    return store.properties_for_landlord(user.id)


@router.get("/properties/{property_id}", response_model=schemas.PropertyRead)
def get_property(property_id: int, store: SqlStorage = Depends(get_storage)):
    prop = store.get_property(property_id)
    if not prop:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")
    return prop


@router.post(
    "/properties",
    response_model=schemas.PropertyRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("write"))],
)
def create_property(
    payload: schemas.PropertyCreate,
    store: SqlStorage = Depends(get_storage),
    user: models.User = Depends(require_landlord),
):
    """
    Create a new property owned by the authenticated landlord.

    Validation is handled by Pydantic; this endpoint assigns ownership and persists the record.
    """
    return store.create_property(user.id, payload.model_dump())


@router.put(
    "/properties/{property_id}",
    response_model=schemas.PropertyRead,
    dependencies=[Depends(rate_limit("write"))],
)
def update_property(
    property_id: int,
    payload: schemas.PropertyUpdate,
    store: SqlStorage = Depends(get_storage),
    user: models.User = Depends(get_current_user),
):
    prop = _owned_property(store, property_id, user)
    changes = payload.model_dump(exclude_unset=True)
    # Required columns cannot be cleared through a partial update
    for field in ("title", "description", "address", "price", "rooms", "size", "available", "images"):
        if field in changes and changes[field] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be null")
    return store.update_property(prop, changes)


@router.delete(
    "/properties/{property_id}",
    dependencies=[Depends(rate_limit("write"))],
)
def delete_property(
    property_id: int,
    store: SqlStorage = Depends(get_storage),
    user: models.User = Depends(get_current_user),
) -> dict:
    prop = _owned_property(store, property_id, user)
    store.delete_property(prop)
    return {"message": "Property deleted successfully"}
