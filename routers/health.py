import logging

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from alembic.config import Config
from alembic.script import ScriptDirectory
from db import engine
from errors import InternalError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/db")
def health_db():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database health check failed: %s", type(e).__name__)
        raise InternalError("Database unavailable", reason="db_unavailable")
    return {"success": True, "message": "Database reachable"}


def _alembic_heads() -> list[str]:
    cfg = Config("alembic.ini")
    script = ScriptDirectory.from_config(cfg)
    return list(script.get_heads())


@router.get("/migrations")
def health_migrations():
    heads: list[str] = []
    db_ver = None
    try:
        heads = _alembic_heads()
    except Exception as e:  # missing alembic.ini when run outside the project root
        logger.warning("Could not read Alembic heads: %s", e)

    try:
        with engine.connect() as conn:
            db_ver = conn.execute(text("SELECT version_num FROM alembic_version")).scalar_one_or_none()
    except SQLAlchemyError:
        # no alembic_version table: schema was never migrated
        db_ver = None

    synced = (db_ver in heads) if heads else False
    return {
        "success": True,
        "message": "Migrations in sync" if synced else "Migrations not in sync",
        "data": {"synced": synced, "dbVersion": db_ver, "codeHeads": heads},
    }
