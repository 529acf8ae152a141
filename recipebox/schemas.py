"""Pydantic schemas for the recipebox API.

Request/response models for:
- Users and sessions
- Recipes (create, partial update, output)
- Grocery items
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator


# --- Auth ---

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    email_verified: bool
    image: Optional[str]
    created_at: datetime
    updated_at: datetime


class SessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    expires_at: datetime
    ip_address: Optional[str]
    user_agent: Optional[str]
    created_at: datetime
    updated_at: datetime


class SessionEnvelope(BaseModel):
    session: SessionOut
    user: UserOut


# --- Recipe ---

class RecipeCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: StrictStr = Field(..., min_length=1)
    ingredients: StrictStr = Field(..., min_length=1)
    instructions: StrictStr = Field(..., min_length=1)
    website_url: Optional[StrictStr] = None
    image_url: Optional[StrictStr] = None


class RecipeUpdate(BaseModel):
    """Partial update. Only fields present in the request body are applied."""
    model_config = ConfigDict(extra="ignore")

    title: Optional[StrictStr] = None
    ingredients: Optional[StrictStr] = None
    instructions: Optional[StrictStr] = None
    website_url: Optional[StrictStr] = None
    image_url: Optional[StrictStr] = None

    @model_validator(mode="after")
    def _check_fields(self) -> "RecipeUpdate":
        provided = self.model_fields_set & set(type(self).model_fields)
        if not provided:
            raise ValueError(
                "At least one of title, ingredients, instructions, website_url, image_url is required"
            )
        for name in ("title", "ingredients", "instructions"):
            if name in provided and not getattr(self, name):
                raise ValueError(f"{name} must be a non-empty string")
        return self

    def changes(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in type(self).model_fields if name in self.model_fields_set}


class RecipeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    ingredients: str
    instructions: str
    website_url: Optional[str]
    image_url: Optional[str]
    user_id: str = Field(serialization_alias="userId")
    created_at: datetime
    updated_at: datetime


class RecipeEnvelope(BaseModel):
    recipe: RecipeOut


class RecipeListEnvelope(BaseModel):
    recipes: list[RecipeOut]


class RecipeDeleted(BaseModel):
    success: bool = True
    recipe: RecipeOut


# --- Grocery ---

class GroceryItemWrite(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: StrictStr = Field(..., min_length=1)


class GroceryItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime


class GroceryItemEnvelope(BaseModel):
    item: GroceryItemOut


class GroceryListEnvelope(BaseModel):
    items: list[GroceryItemOut]


class GroceryItemDeleted(BaseModel):
    success: bool = True
    item: GroceryItemOut


# --- Dev ---

class SeedResult(BaseModel):
    recipes_created: int
    recipes: list[RecipeOut]
