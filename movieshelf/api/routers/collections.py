import logging

from fastapi import APIRouter, Depends, HTTPException, status

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from movieshelf.db.database_session import get_db
from movieshelf.db.models.collections import Collection
from movieshelf.db.models.collection_items import CollectionItem
from movieshelf.api.security import TokenIdentity, get_current_identity
from movieshelf.api.schemas import (
    CollectionCreateRequest,
    CollectionCreatedResponse,
    CollectionItemCreateRequest,
    CollectionItemCreatedResponse,
    CollectionItemListResponse,
    CollectionItemResponse,
    CollectionListResponse,
    CollectionResponse,
    SuccessResponse,
)


logger = logging.getLogger(__name__)

# Define router
router = APIRouter(prefix="/api/collections", tags=["collections"])


def get_owned_collection(db: Session, collection_id: int, user_id: int) -> Collection:
    '''
    Looks up a collection by its id, scoped to the given owner.

    A collection of another user is reported exactly like a missing one, so callers
    cannot learn which ids exist.

    Raises
    ------
    HTTPException
        404 if the caller owns no collection with this id.
    '''
    collection = (
        db.query(Collection)
        .filter(Collection.id == collection_id, Collection.user_id == user_id)
        .first()
    )
    if not collection:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Collection not found")
    return collection


@router.get("", response_model=CollectionListResponse)
def list_collections(
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(get_current_identity),
):
    """
    Returns all collections of the current user, newest first.
    """
    collections = (
        db.query(Collection)
        .filter(Collection.user_id == identity.user_id)
        .order_by(Collection.created_at.desc(), Collection.id.desc())
        .all()
    )
    return CollectionListResponse(
        collections=[CollectionResponse.model_validate(c) for c in collections]
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CollectionCreatedResponse)
def create_collection(
    payload: CollectionCreateRequest,
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(get_current_identity),
):
    """
    Creates a new, empty collection owned by the current user.

    **Parameters**:\n
    `payload` (CollectionCreateRequest): Name of the collection.\n

    **Returns**:\n
    `CollectionCreatedResponse`: The stored collection.
    """
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Collection name is required")

    collection = Collection(user_id=identity.user_id, name=name)
    db.add(collection)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.exception("Failed to create collection for user %s", identity.user_id)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to create collection due to a database constraint violation.",
        )
    db.refresh(collection)

    return CollectionCreatedResponse(collection=CollectionResponse.model_validate(collection))


@router.delete("/{collection_id}", response_model=SuccessResponse)
def delete_collection(
    collection_id: int,
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(get_current_identity),
):
    """
    Deletes a collection of the current user together with all of its items.
    """
    collection = get_owned_collection(db, collection_id, identity.user_id)

    # Items first, then the collection itself
    db.query(CollectionItem).filter(CollectionItem.collection_id == collection.id).delete(
        synchronize_session=False
    )
    db.delete(collection)
    db.commit()

    logger.info("Deleted collection %s of user %s", collection_id, identity.user_id)
    return SuccessResponse()


@router.get("/{collection_id}/items", response_model=CollectionItemListResponse)
def list_collection_items(
    collection_id: int,
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(get_current_identity),
):
    """
    Returns all movies stored in one of the current user's collections.
    """
    collection = get_owned_collection(db, collection_id, identity.user_id)

    items = (
        db.query(CollectionItem)
        .filter(CollectionItem.collection_id == collection.id)
        .order_by(CollectionItem.id.asc())
        .all()
    )
    return CollectionItemListResponse(items=[CollectionItemResponse.model_validate(i) for i in items])


@router.post(
    "/{collection_id}/items",
    status_code=status.HTTP_201_CREATED,
    response_model=CollectionItemCreatedResponse,
)
def add_collection_item(
    collection_id: int,
    payload: CollectionItemCreateRequest,
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(get_current_identity),
):
    """
    Adds a movie to one of the current user's collections. A movie can only be stored
    once per collection.

    **Returns**:\n
    `CollectionItemCreatedResponse`: The id of the new item.
    """
    collection = get_owned_collection(db, collection_id, identity.user_id)

    # Check if the movie is already part of the collection
    existing = (
        db.query(CollectionItem)
        .filter(
            CollectionItem.collection_id == collection.id,
            CollectionItem.tmdb_id == payload.tmdb_id,
        )
        .first()
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Movie already in collection")

    item = CollectionItem(
        collection_id=collection.id,
        tmdb_id=payload.tmdb_id,
        title=payload.title,
        poster_path=payload.poster_path,
    )
    db.add(item)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to add movie to collection due to a database constraint violation.",
        )
    db.refresh(item)

    return CollectionItemCreatedResponse(item_id=item.id)


@router.delete("/{collection_id}/items/{item_id}", response_model=SuccessResponse)
def delete_collection_item(
    collection_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(get_current_identity),
):
    """
    Removes a single movie from one of the current user's collections.
    """
    collection = get_owned_collection(db, collection_id, identity.user_id)

    item = (
        db.query(CollectionItem)
        .filter(CollectionItem.id == item_id, CollectionItem.collection_id == collection.id)
        .first()
    )
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")

    db.delete(item)
    db.commit()
    return SuccessResponse()
