# app/api/deps.py
from typing import Optional

from fastapi import Header

from app.config import settings
from app.services.backend import ProductBackend


def get_backend() -> ProductBackend:
    """
    Dependency that returns a client for the external product backend.
    Usage:
        backend: ProductBackend = Depends(get_backend)
    Tests replace it through app.dependency_overrides.
    """
    return ProductBackend.from_settings(settings)


def get_authorization(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """
    Return the caller's Authorization header unchanged, or None.

    The proxy does not verify or reject tokens; a missing or bad token is the
    backend's call to make.
    """
    if authorization is None:
        return None
    authorization = authorization.strip()
    return authorization or None
