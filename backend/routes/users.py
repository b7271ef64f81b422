"""
User profile routes. A profile is keyed by the identity-provider uid and is
created on first write.
"""
from datetime import datetime

from flask import Blueprint, g, jsonify, request
from pymongo import ReturnDocument

from auth import require_auth
from db import users

users_bp = Blueprint("users", __name__, url_prefix="/api/users")

DEFAULT_NAME = "New User"
DEFAULT_SHOP_NAME = "My Shop"


def _profile(user: dict) -> dict:
    """Public view of a user document (never the uid or timestamps)."""
    return {
        "id": str(user["_id"]),
        "name": user.get("name", ""),
        "email": user.get("email", ""),
        "shopName": user.get("shopName", ""),
        "profileImage": user.get("profileImage", ""),
    }


def _new_user(uid: str, email: str, **fields) -> dict:
    now = datetime.utcnow()
    user = {
        "uid": uid,
        "name": fields.get("name") or DEFAULT_NAME,
        "email": email or "",
        "shopName": fields.get("shopName") or DEFAULT_SHOP_NAME,
        "profileImage": fields.get("profileImage") or "",
        "createdAt": now,
        "updatedAt": now,
    }
    users().insert_one(user)
    print(f"[Users] Created profile for {uid}")
    return user


def _email_taken(email: str, uid: str) -> bool:
    return users().find_one({"email": email, "uid": {"$ne": uid}}) is not None


@users_bp.route("/profile", methods=["GET"])
@require_auth
def get_profile():
    user = users().find_one({"uid": g.user["userId"]})
    if not user:
        return jsonify({"message": "User not found"}), 404
    return jsonify(_profile(user))


@users_bp.route("/profile", methods=["PUT"])
@require_auth
def update_profile():
    """
    Create or update the caller's profile.

    Request body (JSON):
        - name, shopName (optional strings)
        - email (optional): must not belong to another user
    """
    uid = g.user["userId"]
    data = request.get_json(silent=True) or {}
    for field in ("name", "email", "shopName"):
        if field in data and not isinstance(data[field], str):
            return jsonify({"message": f"{field} must be a string"}), 400

    email = (data.get("email") or "").strip()
    user = users().find_one({"uid": uid})

    if not user:
        email = email or g.user.get("email") or ""
        if email and _email_taken(email, uid):
            return jsonify({"message": "Email already in use"}), 400
        user = _new_user(uid, email, name=data.get("name"), shopName=data.get("shopName"))
        return jsonify(_profile(user))

    changes = {k: data[k].strip() for k in ("name", "shopName") if data.get(k, "").strip()}
    if email and email != user.get("email"):
        if _email_taken(email, uid):
            return jsonify({"message": "Email already in use"}), 400
        changes["email"] = email
    changes["updatedAt"] = datetime.utcnow()

    user = users().find_one_and_update(
        {"uid": uid},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    print(f"[Users] Updated profile for {uid}")
    return jsonify(_profile(user))


@users_bp.route("/profile-image", methods=["POST"])
@require_auth
def update_profile_image():
    """Store the URL the media host returned for the caller's uploaded image."""
    uid = g.user["userId"]
    data = request.get_json(silent=True) or {}
    url = data.get("profileImage")
    if not isinstance(url, str) or not url.strip():
        return jsonify({"message": "Profile image URL is required"}), 400
    url = url.strip()

    user = users().find_one_and_update(
        {"uid": uid},
        {"$set": {"profileImage": url, "updatedAt": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not user:
        user = _new_user(uid, g.user.get("email"), profileImage=url)
    return jsonify({"profileImage": user["profileImage"]})
