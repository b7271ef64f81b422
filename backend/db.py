"""
Centralized MongoDB connection.
Call `products()` or `sales()` from routes to get the collection for the running app.
"""
from datetime import datetime

from bson import ObjectId
from bson.errors import InvalidId
from flask import current_app
from pymongo import MongoClient

from config import MONGODB_DB, MONGODB_URI


def init_db(app, database=None):
    """
    Attach a Mongo database to the app. Tests pass an in-memory database;
    otherwise connect with MONGODB_URI.
    """
    if database is None:
        if not MONGODB_URI:
            print("[DB] MONGODB_URI is not set; falling back to mongodb://localhost:27017")
        client = MongoClient(
            MONGODB_URI,
            serverSelectionTimeoutMS=5000,
            socketTimeoutMS=45000,
        )
        database = client[MONGODB_DB]
    app.extensions["mongo_db"] = database
    return database


def get_db():
    return current_app.extensions["mongo_db"]


def products():
    return get_db()["products"]


def sales():
    return get_db()["sales"]


def users():
    return get_db()["users"]


def parse_object_id(value: str):
    """ObjectId for a path parameter, or None if it is not a valid id."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _to_json(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _to_json(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_json(v) for v in value]
    return value


def serialize_doc(doc: dict) -> dict:
    """Convert a MongoDB document to JSON-serializable format (`_id` -> `id`)."""
    if doc is None:
        return None
    out = _to_json(dict(doc))
    if "_id" in out:
        out["id"] = out.pop("_id")
    return out
