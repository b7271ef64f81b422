"""
Inventory backend: Flask app for the product catalog, the sales ledger and
the live dashboard stream.

Live update flow:
  1. Dashboard opens GET /events → a Channel is admitted and gets a heartbeat
  2. A shared ticker sends a heartbeat to every channel every SSE_KEEPALIVE_SECONDS
  3. POST /api/sales records a sale → broadcast {"type": "sale", ...} to every channel
  4. Dashboard disconnects (or a write fails) → the channel is removed
"""

from flask import Flask, jsonify
from flask_cors import CORS
from pymongo.errors import PyMongoError
from werkzeug.exceptions import HTTPException

import config
from db import get_db, init_db
from events import EventBroadcaster, SubscriberRegistry
from routes.events import events_bp
from routes.products import products_bp
from routes.sales import sales_bp
from routes.users import users_bp


def create_app(database=None, registry: SubscriberRegistry = None, start_keepalive: bool = True) -> Flask:
    """
    Build the app. Tests inject an in-memory database and their own registry;
    production uses MONGODB_URI and a registry tuned from the SSE_* settings.
    """
    app = Flask(__name__)
    # /events sets its own permissive header; the allow-list only covers the API.
    CORS(app, resources={r"/api/*": {"origins": config.CORS_ORIGINS}}, supports_credentials=True)

    init_db(app, database)

    if registry is None:
        registry = SubscriberRegistry(
            keepalive_interval=config.SSE_KEEPALIVE_SECONDS,
            max_channels=config.SSE_MAX_CLIENTS,
            backlog=config.SSE_CLIENT_BACKLOG,
        )
    app.extensions["sse_registry"] = registry
    app.extensions["sse_broadcaster"] = EventBroadcaster(registry)
    if start_keepalive:
        registry.start()

    # Events route first so the stream is never behind API middleware.
    app.register_blueprint(events_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(users_bp)

    @app.errorhandler(Exception)
    def handle_any_error(e):
        """Every error leaves as JSON. HTTP errors keep their status; anything else is a 500."""
        if isinstance(e, HTTPException):
            return jsonify({"message": e.description}), e.code
        import traceback
        print(f"[GLOBAL ERROR] {type(e).__name__}: {e}")
        traceback.print_exc()
        return jsonify({"message": "Server error", "error": str(e)}), 500

    @app.route("/")
    def index():
        return jsonify({
            "message": "Welcome to the Inventory Management API",
            "status": "running",
            "version": "1.0.0",
            "endpoints": {
                "events": "/events",
                "products": "/api/products",
                "sales": "/api/sales",
                "users": "/api/users",
            },
        })

    @app.route("/favicon.ico")
    def favicon():
        return "", 204

    @app.route("/api/health")
    def health():
        """Liveness plus a Mongo ping; 503 when the database does not answer."""
        try:
            get_db().command("ping")
        except PyMongoError as e:
            print(f"[DB] Health check ping failed: {e}")
            return jsonify({
                "status": "error",
                "database": "unreachable",
                "error": str(e),
                "liveClients": registry.size(),
            }), 503
        return jsonify({"status": "ok", "database": "connected", "liveClients": registry.size()})

    return app


if __name__ == "__main__":
    app = create_app()
    print("=" * 60)
    print(f"  Inventory backend starting on http://0.0.0.0:{config.PORT}")
    print(f"  Live stream: /events (keep-alive every {config.SSE_KEEPALIVE_SECONDS:g}s)")
    print("=" * 60)
    try:
        # threaded: each open /events stream holds a worker thread
        app.run(host="0.0.0.0", port=config.PORT, debug=config.FLASK_DEBUG,
                use_reloader=config.FLASK_DEBUG, threaded=True)
    finally:
        app.extensions["sse_registry"].shutdown()
