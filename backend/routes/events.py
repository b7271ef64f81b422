"""
Live dashboard stream (SSE) routes.
"""
from flask import Blueprint, Response, current_app, jsonify

from events import RegistryFull

events_bp = Blueprint("events", __name__, url_prefix="/events")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
    # No per-user data on this stream, so it skips the /api CORS allow-list.
    "Access-Control-Allow-Origin": "*",
}


def get_registry():
    return current_app.extensions["sse_registry"]


@events_bp.route("", methods=["GET"])
def stream():
    """Server-Sent Events: heartbeat on connect, then every broadcast event."""
    registry = get_registry()
    try:
        channel = registry.open()
    except RegistryFull as e:
        print(f"[SSE] Refused connection: {e}")
        return jsonify({"message": "Too many live connections"}), 503
    if channel.closed:
        # The connect heartbeat could not be queued, so the channel was dropped.
        return jsonify({"message": "Live stream unavailable"}), 503

    def gen():
        try:
            yield from channel.frames()
        finally:
            # Client went away (generator closed) or the registry shut down.
            registry.remove(channel)

    return Response(
        gen(),
        mimetype="text/event-stream",
        headers=SSE_HEADERS,
    )


@events_bp.route("/test", methods=["GET"])
def test_route():
    """Confirms the events blueprint is mounted."""
    return jsonify({"message": "Events route is working"})


@events_bp.route("/stats", methods=["GET"])
def stats():
    return jsonify({"clients": get_registry().size()})
