import logging

from fastapi import APIRouter
from sqlalchemy import text

from nextplay.core.settings import get_settings
from nextplay.dependencies import DbSession

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
def root_health_check() -> dict[str, str]:
    return {"status": "running", "service": get_settings().app_name}


@router.get("/health")
def health_check(db: DbSession) -> dict[str, str]:
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except Exception:
        logger.exception("Health check could not reach the database")
        database = "unavailable"
    return {"status": "ok", "database": database}
