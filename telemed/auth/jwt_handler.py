from datetime import datetime, timedelta, timezone

import jwt

from telemed.core import config

def create_access_token(subject: str, role: str | None = None, expires_minutes: int | None = None) -> str:
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=expire_minutes)
    payload = {"sub": subject, "exp": expire, "iat": datetime.now(timezone.utc)}
    if role:
        payload["role"] = role
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])


def read_session_claims(authorization: str | None, session_cookie: str | None = None) -> dict | None:
    """Decode the caller's token from a bearer header or session cookie.

    Returns ``None`` when no token is present or it does not verify.
    """
    token = None
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            token = credentials.strip()
    if token is None and session_cookie:
        token = session_cookie

    if token is None:
        return None

    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        return None

    if not payload.get("sub"):
        return None
    return payload
