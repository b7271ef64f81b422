"""
Centralized config for the inventory backend.
Loads connection strings, auth settings and SSE tuning from environment; no secrets in code.
"""
import os

from dotenv import load_dotenv

load_dotenv()

# MongoDB
MONGODB_URI = os.getenv("MONGODB_URI")
MONGODB_DB = os.getenv("MONGODB_DB", "inventory")

# Identity provider (bearer tokens)
AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET", "dev-secret-change-me")
AUTH_JWT_ALGORITHM = os.getenv("AUTH_JWT_ALGORITHM", "HS256")
AUTH_JWT_AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE")

# CORS allow-list for /api/*; "*" allows any origin (development)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Live dashboard stream
SSE_KEEPALIVE_SECONDS = float(os.getenv("SSE_KEEPALIVE_SECONDS", "30"))
SSE_MAX_CLIENTS = int(os.getenv("SSE_MAX_CLIENTS", "0")) or None  # 0 = no ceiling
SSE_CLIENT_BACKLOG = int(os.getenv("SSE_CLIENT_BACKLOG", "256"))

PORT = int(os.getenv("PORT", "5000"))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "0").lower() in ("1", "true", "yes")
