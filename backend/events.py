"""
Server-Sent Events (SSE) for real-time push to the dashboard.

A SubscriberRegistry owns every open Channel (one per connected dashboard) and
keeps them alive with a single shared heartbeat ticker. An EventBroadcaster
pushes one event to every channel in the registry; a channel whose write fails
is dropped and the rest still get the event.

Flask serves each request on its own thread, so membership changes and every
fan-out pass (broadcast or heartbeat) run under the registry lock.
"""

import itertools
import json
import queue
import threading
from contextlib import contextmanager

KEEPALIVE_INTERVAL = 30.0
CLIENT_BACKLOG = 256


class ChannelClosed(Exception):
    """Write to a channel that is closed or whose client stopped reading."""


class RegistryFull(Exception):
    """Admission refused because the registry is at its channel ceiling."""


def format_event(event: dict) -> str:
    """Frame an event as one SSE message: `data: <json>\\n\\n`."""
    return f"data: {json.dumps(event, separators=(',', ':'))}\n\n"


HEARTBEAT_FRAME = format_event({"type": "heartbeat"})

_CLOSE = object()  # wakes a reader blocked in frames()


class Channel:
    """One server-to-client push connection. Writes never block."""

    _ids = itertools.count(1)

    def __init__(self, backlog: int = CLIENT_BACKLOG):
        self.id = next(Channel._ids)
        self._frames = queue.Queue(maxsize=backlog + 1)  # +1 slot for the close marker
        self._backlog = backlog
        self._closed = threading.Event()

    def __repr__(self):
        state = "closed" if self.closed else "open"
        return f"<Channel {self.id} {state}>"

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def write(self, frame: str):
        if self.closed:
            raise ChannelClosed(f"channel {self.id} is closed")
        if self._frames.qsize() >= self._backlog:
            raise ChannelClosed(f"channel {self.id} backlog full ({self._backlog} frames)")
        self._frames.put_nowait(frame)

    def close(self):
        if self._closed.is_set():
            return
        self._closed.set()
        try:
            self._frames.put_nowait(_CLOSE)
        except queue.Full:
            pass  # reader sees the closed flag on its next poll

    def frames(self, poll: float = 1.0):
        """Yield queued frames until the channel is closed."""
        while not self.closed:
            try:
                frame = self._frames.get(timeout=poll)
            except queue.Empty:
                continue
            if frame is _CLOSE:
                return
            yield frame

    def drain(self) -> list:
        """Return every frame queued right now without blocking."""
        out = []
        while True:
            try:
                frame = self._frames.get_nowait()
            except queue.Empty:
                return out
            if frame is not _CLOSE:
                out.append(frame)


class SubscriberRegistry:
    """Live set of open channels, keyed by channel id."""

    def __init__(self, keepalive_interval: float = KEEPALIVE_INTERVAL,
                 max_channels: int = None, backlog: int = CLIENT_BACKLOG):
        if backlog < 1:
            raise ValueError(f"backlog must be at least 1 frame, got {backlog}")
        self.keepalive_interval = keepalive_interval
        self.max_channels = max_channels
        self.backlog = backlog
        self._channels: dict[int, Channel] = {}
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._ticker = None

    def open(self) -> Channel:
        """Create a brand-new channel and admit it. The channel is closed if admission failed."""
        channel = Channel(self.backlog)
        self.admit(channel)
        return channel

    def admit(self, channel: Channel) -> bool:
        """
        Add a channel and send it one heartbeat right away.
        Returns False if it is already a member, already closed, or the heartbeat write failed
        (in which case it has already been removed again).
        """
        with self._lock:
            if channel.id in self._channels or channel.closed:
                return False
            if self.max_channels is not None and len(self._channels) >= self.max_channels:
                raise RegistryFull(f"registry is at its limit of {self.max_channels} channels")
            self._channels[channel.id] = channel
            print(f"[SSE] Client {channel.id} connected. Active connections: {len(self._channels)}")
            return self.deliver(channel, HEARTBEAT_FRAME)

    def remove(self, channel: Channel):
        """Drop a channel and close it. Removing an absent channel is a no-op."""
        with self._lock:
            removed = self._channels.pop(channel.id, None)
            channel.close()
            if removed is not None:
                print(f"[SSE] Client {channel.id} disconnected. Active connections: {len(self._channels)}")

    def size(self) -> int:
        with self._lock:
            return len(self._channels)

    def __contains__(self, channel: Channel) -> bool:
        with self._lock:
            return self._channels.get(channel.id) is channel

    @contextmanager
    def members(self):
        """Hold the registry lock for a fan-out pass and yield a snapshot of the members."""
        with self._lock:
            yield list(self._channels.values())

    def deliver(self, channel: Channel, frame: str) -> bool:
        """Write one frame; on failure the channel is removed. Never raises."""
        if channel.closed:
            self.remove(channel)
            return False
        try:
            channel.write(frame)
        except ChannelClosed as e:
            print(f"[SSE] Dropping client {channel.id}: {e}")
            self.remove(channel)
            return False
        return True

    def heartbeat(self) -> int:
        """One keep-alive pass over every member. Returns how many writes succeeded."""
        sent = 0
        with self.members() as channels:
            for channel in channels:
                if self.deliver(channel, HEARTBEAT_FRAME):
                    sent += 1
        return sent

    # -------------------------------------------------------------------------
    # Keep-alive ticker: one thread for the whole registry, not one per channel.
    # -------------------------------------------------------------------------

    def start(self):
        if self._ticker is not None and self._ticker.is_alive():
            return
        self._stop.clear()
        self._ticker = threading.Thread(target=self._run_keepalive, name="sse-keepalive", daemon=True)
        self._ticker.start()

    def _run_keepalive(self):
        while not self._stop.wait(self.keepalive_interval):
            try:
                self.heartbeat()
            except Exception as e:
                # One bad pass must not stop keep-alives for everyone else.
                print(f"[SSE] Keep-alive pass failed: {type(e).__name__}: {e}")

    def shutdown(self, timeout: float = 5.0):
        """Stop the ticker, then remove and close every channel."""
        self._stop.set()
        if self._ticker is not None:
            self._ticker.join(timeout)
            self._ticker = None
        with self.members() as channels:
            for channel in channels:
                self.remove(channel)
        print("[SSE] Registry shut down")


class EventBroadcaster:
    """Pushes application events to every channel in a registry. Fire-and-forget."""

    def __init__(self, registry: SubscriberRegistry):
        self.registry = registry

    def broadcast(self, event: dict):
        """Send event to all connected clients. Event must be JSON-serializable."""
        frame = format_event(event)
        with self.registry.members() as channels:
            print(f"[SSE] Broadcasting {event.get('type')!r} to {len(channels)} clients")
            for channel in channels:
                self.registry.deliver(channel, frame)
