"""Grocery list API router. Items are shared; no sign-in required."""

import logging

from fastapi import APIRouter, Depends, Path
from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import NotFound, db_errors
from ..models import MAX_INT_ID, GroceryItem
from ..schemas import (
    GroceryItemDeleted,
    GroceryItemEnvelope,
    GroceryItemOut,
    GroceryItemWrite,
    GroceryListEnvelope,
)

router = APIRouter()
logger = logging.getLogger("recipebox.grocery")


@router.get("", response_model=GroceryListEnvelope)
def list_items(db: Session = Depends(get_db)):
    with db_errors(db, "Failed to fetch grocery items"):
        items = db.scalars(select(GroceryItem).order_by(GroceryItem.id)).all()
    return GroceryListEnvelope(items=[GroceryItemOut.model_validate(i) for i in items])


@router.get("/{item_id}", response_model=GroceryItemEnvelope)
def get_item(
    item_id: int = Path(..., ge=1, le=MAX_INT_ID),
    db: Session = Depends(get_db),
):
    with db_errors(db, "Failed to fetch grocery item"):
        item = db.get(GroceryItem, item_id)
    if not item:
        raise NotFound("Grocery item not found")
    return GroceryItemEnvelope(item=GroceryItemOut.model_validate(item))


@router.post("", response_model=GroceryItemEnvelope, status_code=201)
def create_item(payload: GroceryItemWrite, db: Session = Depends(get_db)):
    item = GroceryItem(name=payload.name)
    with db_errors(db, "Failed to create grocery item"):
        db.add(item)
        db.commit()
        db.refresh(item)
    return GroceryItemEnvelope(item=GroceryItemOut.model_validate(item))


@router.put("/{item_id}", response_model=GroceryItemEnvelope)
def update_item(
    payload: GroceryItemWrite,
    item_id: int = Path(..., ge=1, le=MAX_INT_ID),
    db: Session = Depends(get_db),
):
    with db_errors(db, "Failed to update grocery item"):
        result = db.execute(
            update(GroceryItem)
            .where(GroceryItem.id == item_id)
            .values(name=payload.name)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise NotFound("Grocery item not found")
        db.commit()
        item = db.get(GroceryItem, item_id)
    if not item:
        raise NotFound("Grocery item not found")
    return GroceryItemEnvelope(item=GroceryItemOut.model_validate(item))


@router.delete("/{item_id}", response_model=GroceryItemDeleted)
def delete_item(
    item_id: int = Path(..., ge=1, le=MAX_INT_ID),
    db: Session = Depends(get_db),
):
    with db_errors(db, "Failed to delete grocery item"):
        item = db.get(GroceryItem, item_id)
        if not item:
            raise NotFound("Grocery item not found")
        snapshot = GroceryItemOut.model_validate(item)
        result = db.execute(
            delete(GroceryItem)
            .where(GroceryItem.id == item_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise NotFound("Grocery item not found")
        db.commit()
    logger.info("Deleted grocery item %s", item_id)
    return GroceryItemDeleted(success=True, item=snapshot)
