"""
Bearer-token verification against the identity provider.
The verified `sub` claim is the owner id every product and sale is scoped by.
"""
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import g, jsonify, request

from config import AUTH_JWT_ALGORITHM, AUTH_JWT_AUDIENCE, AUTH_JWT_SECRET


def issue_token(user_id: str, email: str = None, expires_in: int = 86400) -> str:
    """Sign a token the way the identity provider does. Used for local dev and tests."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
    }
    if email:
        payload["email"] = email
    if AUTH_JWT_AUDIENCE:
        payload["aud"] = AUTH_JWT_AUDIENCE
    return jwt.encode(payload, AUTH_JWT_SECRET, algorithm=AUTH_JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Decode and verify a bearer token.
    Returns {"userId", "email"}; raises jwt.InvalidTokenError if the token is bad.
    """
    options = {"verify_aud": bool(AUTH_JWT_AUDIENCE)}
    claims = jwt.decode(
        token,
        AUTH_JWT_SECRET,
        algorithms=[AUTH_JWT_ALGORITHM],
        audience=AUTH_JWT_AUDIENCE,
        options=options,
    )
    user_id = claims.get("sub") or claims.get("uid")
    if not user_id:
        raise jwt.InvalidTokenError("token has no subject")
    return {"userId": user_id, "email": claims.get("email")}


def require_auth(view):
    """Reject the request with 401 unless it carries a valid bearer token; sets g.user."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        header = request.headers.get("Authorization", "")
        token = header[len("Bearer "):] if header.startswith("Bearer ") else ""
        if not token:
            return jsonify({"message": "Authentication required"}), 401
        try:
            g.user = verify_token(token)
        except jwt.InvalidTokenError as e:
            print(f"[Auth] Token verification error: {e}")
            return jsonify({"message": "Invalid token"}), 401
        return view(*args, **kwargs)

    return wrapper
