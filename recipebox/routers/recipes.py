"""Recipes CRUD API router.

Every endpoint is scoped to the signed-in user. A recipe that exists but
belongs to someone else is reported exactly like a missing one (404).

Endpoints:
- GET /api/recipes - List the caller's recipes
- POST /api/recipes - Create recipe
- GET /api/recipes/{id} - Get recipe
- PUT /api/recipes/{id} - Partial update
- DELETE /api/recipes/{id} - Delete recipe
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path
from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from ..core.clock import next_after, utcnow
from ..db import get_db
from ..deps import ResolvedSession, require_session
from ..errors import NotFound, db_errors
from ..models import MAX_INT_ID, Recipe
from ..schemas import (
    RecipeCreate,
    RecipeDeleted,
    RecipeEnvelope,
    RecipeListEnvelope,
    RecipeOut,
    RecipeUpdate,
)

router = APIRouter()
logger = logging.getLogger("recipebox.recipes")


def _owned_recipe(db: Session, recipe_id: int, user_id: str) -> Optional[Recipe]:
    return db.scalar(
        select(Recipe).where(Recipe.id == recipe_id, Recipe.user_id == user_id)
    )


@router.get("/recipes", response_model=RecipeListEnvelope)
def list_recipes(
    db: Session = Depends(get_db),
    auth: ResolvedSession = Depends(require_session),
):
    """List recipes owned by the caller, newest first."""
    with db_errors(db, "Failed to fetch recipes"):
        recipes = db.scalars(
            select(Recipe)
            .where(Recipe.user_id == auth.user.id)
            .order_by(Recipe.created_at.desc(), Recipe.id.desc())
        ).all()
    return RecipeListEnvelope(recipes=[RecipeOut.model_validate(r) for r in recipes])


@router.get("/recipes/{recipe_id}", response_model=RecipeEnvelope)
def get_recipe(
    recipe_id: int = Path(..., ge=1, le=MAX_INT_ID),
    db: Session = Depends(get_db),
    auth: ResolvedSession = Depends(require_session),
):
    with db_errors(db, "Failed to fetch recipe"):
        recipe = _owned_recipe(db, recipe_id, auth.user.id)
    if not recipe:
        raise NotFound("Recipe not found")
    return RecipeEnvelope(recipe=RecipeOut.model_validate(recipe))


@router.post("/recipes", response_model=RecipeEnvelope, status_code=201)
def create_recipe(
    payload: RecipeCreate,
    db: Session = Depends(get_db),
    auth: ResolvedSession = Depends(require_session),
):
    """Create a recipe owned by the caller."""
    now = utcnow()
    recipe = Recipe(
        title=payload.title,
        ingredients=payload.ingredients,
        instructions=payload.instructions,
        website_url=payload.website_url,
        image_url=payload.image_url,
        user_id=auth.user.id,
        created_at=now,
        updated_at=now,
    )
    with db_errors(db, "Failed to create recipe"):
        db.add(recipe)
        db.commit()
        db.refresh(recipe)
    logger.info("User %s created recipe %s", auth.user.id, recipe.id)
    return RecipeEnvelope(recipe=RecipeOut.model_validate(recipe))


@router.put("/recipes/{recipe_id}", response_model=RecipeEnvelope)
def update_recipe(
    payload: RecipeUpdate,
    recipe_id: int = Path(..., ge=1, le=MAX_INT_ID),
    db: Session = Depends(get_db),
    auth: ResolvedSession = Depends(require_session),
):
    """Apply the supplied fields. updated_at always moves forward."""
    with db_errors(db, "Failed to update recipe"):
        existing = _owned_recipe(db, recipe_id, auth.user.id)
        if not existing:
            raise NotFound("Recipe not found")

        values = payload.changes()
        values["updated_at"] = next_after(existing.updated_at)

        # Owner stays in the WHERE clause; a row deleted since the check matches nothing.
        result = db.execute(
            update(Recipe)
            .where(Recipe.id == recipe_id, Recipe.user_id == auth.user.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise NotFound("Recipe not found")
        db.commit()
        db.refresh(existing)
    return RecipeEnvelope(recipe=RecipeOut.model_validate(existing))


@router.delete("/recipes/{recipe_id}", response_model=RecipeDeleted)
def delete_recipe(
    recipe_id: int = Path(..., ge=1, le=MAX_INT_ID),
    db: Session = Depends(get_db),
    auth: ResolvedSession = Depends(require_session),
):
    with db_errors(db, "Failed to delete recipe"):
        existing = _owned_recipe(db, recipe_id, auth.user.id)
        if not existing:
            raise NotFound("Recipe not found")
        snapshot = RecipeOut.model_validate(existing)

        result = db.execute(
            delete(Recipe)
            .where(Recipe.id == recipe_id, Recipe.user_id == auth.user.id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise NotFound("Recipe not found")
        db.commit()
    logger.info("User %s deleted recipe %s", auth.user.id, recipe_id)
    return RecipeDeleted(success=True, recipe=snapshot)
