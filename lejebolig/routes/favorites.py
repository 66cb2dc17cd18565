# Tenant favorites: save, list, check and remove listings.
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from .. import models, schemas
from ..storage import SqlStorage, get_storage
from .auth import require_tenant

router = APIRouter()


@router.get("/favorites", response_model=List[schemas.FavoriteRead])
def list_favorites(store: SqlStorage = Depends(get_storage), user: models.User = Depends(require_tenant)):
    """Caller's saved listings, most recently saved first, each with its listing embedded."""
    return store.list_favorites(user.id)


@router.post("/favorites", response_model=schemas.FavoriteRead, status_code=status.HTTP_201_CREATED)
def add_favorite(
    payload: schemas.FavoriteCreate,
    store: SqlStorage = Depends(get_storage),
    user: models.User = Depends(require_tenant),
):
    # Conflict (409) on a duplicate, NotFound (404) for an unknown listing; both via ServiceError handler
    return store.add_favorite(user.id, payload.property_id)


@router.get("/favorites/{property_id}", response_model=schemas.FavoriteStatus)
def favorite_status(
    property_id: int,
    store: SqlStorage = Depends(get_storage),
    user: models.User = Depends(require_tenant),
):
    return schemas.FavoriteStatus(property_id=property_id, favorite=store.is_favorite(user.id, property_id))


@router.delete("/favorites/{property_id}")
def remove_favorite(
    property_id: int,
    store: SqlStorage = Depends(get_storage),
    user: models.User = Depends(require_tenant),
) -> dict:
    if not store.remove_favorite(user.id, property_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Favorite not found")
    return {"message": "Favorite removed successfully"}
