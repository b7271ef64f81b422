"""
Product catalog routes. Every document is scoped to the authenticated owner.
"""
from datetime import datetime

from flask import Blueprint, g, jsonify, request
from pymongo import ReturnDocument

from auth import require_auth
from db import parse_object_id, products, serialize_doc

products_bp = Blueprint("products", __name__, url_prefix="/api/products")

PRODUCT_FIELDS = ("name", "description", "price", "quantity", "category", "imageUrl")


def _validate_product(data: dict, partial: bool = False):
    """Return an error message, or None if the payload is acceptable."""
    if not partial or "name" in data:
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            return "name is required"
    for field in ("description", "category", "imageUrl"):
        if field in data and not isinstance(data[field], str):
            return f"{field} must be a string"
    for field in ("price", "quantity"):
        if field not in data:
            continue
        value = data[field]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return f"{field} must be a number"
        if value < 0:
            return f"{field} must not be negative"
    return None


@products_bp.route("", methods=["GET"])
@require_auth
def list_products():
    """All products owned by the caller."""
    docs = products().find({"owner": g.user["userId"]}).sort("name", 1)
    return jsonify([serialize_doc(d) for d in docs])


@products_bp.route("", methods=["POST"])
@require_auth
def create_product():
    """
    Create a product.

    Request body (JSON):
        - name (required)
        - description, category, imageUrl (optional strings)
        - price, quantity (optional non-negative numbers, default 0)
    """
    data = request.get_json(silent=True) or {}
    error = _validate_product(data)
    if error:
        return jsonify({"message": error}), 400

    now = datetime.utcnow()
    doc = {
        "owner": g.user["userId"],
        "name": data["name"].strip(),
        "description": data.get("description", ""),
        "price": data.get("price", 0),
        "quantity": data.get("quantity", 0),
        "category": data.get("category", ""),
        "imageUrl": data.get("imageUrl", ""),
        "createdAt": now,
        "updatedAt": now,
    }
    products().insert_one(doc)
    return jsonify(serialize_doc(doc)), 201


@products_bp.route("/<product_id>", methods=["PUT"])
@require_auth
def update_product(product_id: str):
    oid = parse_object_id(product_id)
    if oid is None:
        return jsonify({"message": "Product not found"}), 404

    data = request.get_json(silent=True) or {}
    error = _validate_product(data, partial=True)
    if error:
        return jsonify({"message": error}), 400

    changes = {k: data[k] for k in PRODUCT_FIELDS if k in data}
    if "name" in changes:
        changes["name"] = changes["name"].strip()
    changes["updatedAt"] = datetime.utcnow()
    doc = products().find_one_and_update(
        {"_id": oid, "owner": g.user["userId"]},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        return jsonify({"message": "Product not found"}), 404
    return jsonify(serialize_doc(doc))


@products_bp.route("/<product_id>", methods=["DELETE"])
@require_auth
def delete_product(product_id: str):
    oid = parse_object_id(product_id)
    result = products().delete_one({"_id": oid, "owner": g.user["userId"]}) if oid else None
    if not result or result.deleted_count == 0:
        return jsonify({"message": "Product not found"}), 404
    return jsonify({"message": "Product deleted successfully"})
