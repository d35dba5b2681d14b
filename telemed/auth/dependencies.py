from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from telemed.auth import jwt_handler
from telemed.database import get_db
from telemed.models.user import Identity


def _session_claims(request: Request) -> dict | None:
    return jwt_handler.read_session_claims(
        request.headers.get("authorization"),
        request.cookies.get("session"),
    )


def _identity_from_claims(claims: dict | None, db: Session) -> Identity | None:
    if claims is None:
        return None
    return db.query(Identity).filter(Identity.id == claims["sub"]).first()


def get_current_user(request: Request, db: Session = Depends(get_db)) -> Identity:
    """Resolve the caller from a bearer token or the ``session`` cookie."""
    has_credentials = bool(request.headers.get("authorization") or request.cookies.get("session"))
    user = _identity_from_claims(_session_claims(request), db)
    if user is None:
        detail = "Invalid token" if has_credentials else "Authentication required"
        raise HTTPException(status_code=401, detail=detail)
    return user


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Identity | None:
    return _identity_from_claims(_session_claims(request), db)
