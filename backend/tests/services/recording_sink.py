"""In-memory Sink that records frames for assertions on fan-out."""

import json


class RecordingSink:
    """Sink that keeps every frame it receives; fail=True simulates a dead client."""

    def __init__(self, fail: bool = False):
        self.frames: list[str] = []
        self.closed = False
        self.fail = fail

    def send(self, frame: str) -> None:
        if self.fail:
            raise ConnectionResetError("client went away")
        self.frames.append(frame)

    def close(self) -> None:
        self.closed = True

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(f[len("data: "):]) for f in self.frames]

    @property
    def event_types(self) -> list[str]:
        return [p["type"] for p in self.payloads]
