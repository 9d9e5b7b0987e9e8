"""Key-based access checks for the public and privileged routes."""

import os
from typing import Optional

from fastapi import Header, HTTPException, status


def verify_admin_key(
    x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key"),
) -> None:
    """
    Require the private admin key (STORE_ADMIN_KEY) in the X-Admin-Key header.
    The key is server-only; it is never handed to the browser.
    """
    admin_key = os.environ.get("STORE_ADMIN_KEY")

    if not admin_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Admin authentication not configured"
        )

    if not x_admin_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin key required. Provide X-Admin-Key header."
        )

    if x_admin_key != admin_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin key"
        )


def verify_public_key(
    apikey: Optional[str] = Header(None),
) -> None:
    """Require the public key in the apikey header, but only when STORE_PUBLIC_KEY is configured."""
    public_key = os.environ.get("STORE_PUBLIC_KEY")
    if not public_key:
        return

    if apikey != public_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "success": False,
                "error": "Unauthorized",
                "message": "A valid apikey header is required",
            }
        )
