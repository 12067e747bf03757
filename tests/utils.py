"""Test doubles for realtime connections."""
import json

from app.realtime import RealtimeConnection


class RecordingConnection(RealtimeConnection):
    """Connection that keeps every payload it is sent."""

    transport = "test"

    def __init__(self, participant_id=None, user_id=None):
        super().__init__(participant_id=participant_id, user_id=user_id)
        self.sent = []
        self.closed = False

    async def send_text(self, payload):
        self.sent.append(payload)

    async def close(self):
        self.closed = True

    @property
    def messages(self):
        return [json.loads(payload) for payload in self.sent]

    @property
    def types(self):
        return [message["type"] for message in self.messages]


class FailingConnection(RecordingConnection):
    """Connection whose transport is gone; every send raises."""

    async def send_text(self, payload):
        raise ConnectionResetError("peer reset")
