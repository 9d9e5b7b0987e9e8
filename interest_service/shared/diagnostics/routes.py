"""Admin-only diagnostics for configuration and store connectivity."""

import logging
import os

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from interest_service.shared.admin.dependencies import verify_admin_key
from interest_service.shared.database.database import get_db
from interest_service.shared.interest.exceptions import StoreError
from interest_service.shared.interest.service import count_submissions

router = APIRouter(
    prefix="/api/diagnostics",
    tags=["diagnostics"],
    dependencies=[Depends(verify_admin_key)],
)

CONFIG_KEYS = {
    "hasDatabaseUrl": "DATABASE_URL",
    "hasPublicKey": "STORE_PUBLIC_KEY",
    "hasAdminKey": "STORE_ADMIN_KEY",
}


@router.get("/env")
async def check_environment():
    """Report which configuration values are present. Values themselves are never returned."""
    return {
        "success": True,
        "data": {flag: bool(os.environ.get(name)) for flag, name in CONFIG_KEYS.items()},
        "message": "Environment variables check",
    }


@router.get("/store")
async def check_store(db: Session = Depends(get_db)):
    """Run a count query to confirm the store is reachable."""
    try:
        count = count_submissions(db)
    except StoreError:
        logging.error("Store connectivity check failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "success": False,
                "error": "Connection failed",
                "message": "Failed to connect to database",
            }
        )

    return {
        "success": True,
        "data": {"count": count},
        "message": "Database connection successful",
    }
