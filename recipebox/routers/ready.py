import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError

from ..db import Database, get_database

router = APIRouter()
logger = logging.getLogger("recipebox.ready")


@router.get("/")
def root():
    return {"message": "Recipe API is running!"}


@router.get("/api/ready")
def ready(database: Database = Depends(get_database)):
    db_ok = False
    try:
        db_ok = database.ping()
    except SQLAlchemyError:
        logger.warning("Database ping failed", exc_info=True)
    return {"ok": True, "db_ok": db_ok}
