"""Dev-only endpoints for seeding.

Endpoints:
- POST /api/dev/seed - Add sample recipes to the caller's collection
"""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.clock import utcnow
from ..db import get_db
from ..deps import ResolvedSession, get_settings, require_session
from ..errors import NotFound, db_errors
from ..models import Recipe
from ..schemas import RecipeOut, SeedResult
from ..settings import Settings

router = APIRouter()


SEED_RECIPES = [
    {
        "title": "Classic Spaghetti Carbonara",
        "ingredients": "400g spaghetti, 150g pancetta or guanciale, 3 large eggs, 75g Pecorino Romano cheese, 50g Parmesan cheese, 2 cloves garlic, Salt and black pepper to taste, Extra virgin olive oil",
        "instructions": (
            "1. Cook spaghetti in salted water according to package instructions until al dente.\n"
            "2. While pasta cooks, heat olive oil in a large pan and fry the pancetta until crispy.\n"
            "3. In a bowl, whisk eggs and grated cheeses together with black pepper.\n"
            "4. Drain pasta, reserving a cup of pasta water.\n"
            "5. Working quickly, add hot pasta to the pan with pancetta, remove from heat.\n"
            "6. Pour egg mixture over pasta, stirring constantly. Add a splash of pasta water to create a creamy sauce.\n"
            "7. Season with salt if needed and serve immediately with extra cheese and black pepper."
        ),
        "website_url": "https://www.example.com/carbonara",
        "image_url": "https://images.unsplash.com/photo-1600803907087-f56d462fd26b?ixlib=rb-4.0.3&auto=format&fit=crop&w=1000&q=80",
    },
    {
        "title": "Homemade Margherita Pizza",
        "ingredients": (
            "For the dough: 500g '00' flour, 325ml lukewarm water, 7g dried yeast, 10g salt, 1 tbsp olive oil\n"
            "For the topping: 400g can plum tomatoes, 2 garlic cloves, 1 tbsp olive oil, Fresh basil leaves, 250g fresh mozzarella, Salt and pepper to taste"
        ),
        "instructions": (
            "1. Mix flour, yeast, salt in a bowl. Add water and oil, knead for 10 minutes until smooth.\n"
            "2. Let dough rise for 2 hours in a warm place.\n"
            "3. Preheat oven to highest setting (240-275°C) with pizza stone if available.\n"
            "4. Blend tomatoes, garlic, oil, and salt for sauce.\n"
            "5. Divide dough into 2-3 balls, roll out thinly.\n"
            "6. Top with sauce, torn mozzarella, and basil.\n"
            "7. Bake for 8-10 minutes until crust is golden and cheese is bubbling.\n"
            "8. Drizzle with olive oil before serving."
        ),
        "website_url": "https://www.example.com/pizza",
        "image_url": "https://images.unsplash.com/photo-1574071318508-1cdbab80d002?ixlib=rb-4.0.3&auto=format&fit=crop&w=1000&q=80",
    },
    {
        "title": "Thai Green Curry",
        "ingredients": "400ml coconut milk, 4 tbsp green curry paste, 500g chicken breast, 1 tbsp fish sauce, 1 tbsp palm sugar, 2 kaffir lime leaves, 1 red chili, 100g green beans, 1 aubergine, Fresh Thai basil, Jasmine rice to serve",
        "instructions": (
            "1. Heat a little coconut milk in a large pan until it splits.\n"
            "2. Add curry paste and fry for 1-2 minutes until fragrant.\n"
            "3. Add chicken and stir to coat in the paste.\n"
            "4. Pour in remaining coconut milk, add lime leaves, and simmer for 15 minutes.\n"
            "5. Add vegetables and cook for another 5 minutes until tender.\n"
            "6. Season with fish sauce and palm sugar.\n"
            "7. Stir in Thai basil leaves just before serving.\n"
            "8. Serve with jasmine rice."
        ),
        "website_url": "https://www.example.com/thaicurry",
        "image_url": "https://images.unsplash.com/photo-1455619452474-d2be8b1e70cd?ixlib=rb-4.0.3&auto=format&fit=crop&w=1000&q=80",
    },
]


def seed_recipes(db: Session, user_id: str) -> list[Recipe]:
    """Add any sample recipe the user doesn't already have (matched by title)."""
    existing_titles = set(
        db.scalars(select(Recipe.title).where(Recipe.user_id == user_id)).all()
    )
    created = []
    for recipe_data in SEED_RECIPES:
        if recipe_data["title"] in existing_titles:
            continue
        now = utcnow()
        recipe = Recipe(user_id=user_id, created_at=now, updated_at=now, **recipe_data)
        db.add(recipe)
        created.append(recipe)
    db.commit()
    for recipe in created:
        db.refresh(recipe)
    return created


@router.post("/dev/seed", response_model=SeedResult)
def seed_dev_data(
    db: Session = Depends(get_db),
    auth: ResolvedSession = Depends(require_session),
    config: Settings = Depends(get_settings),
):
    """Seed sample recipes for the caller. Idempotent."""
    if not config.dev_routes_enabled:
        raise NotFound("Not Found")
    with db_errors(db, "Failed to seed recipes"):
        created = seed_recipes(db, auth.user.id)
    return SeedResult(
        recipes_created=len(created),
        recipes=[RecipeOut.model_validate(r) for r in created],
    )
