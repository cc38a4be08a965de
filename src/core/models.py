"""
Pydantic v2 models shared by the capture, storage, and UI layers.

RecordingAsset mirrors one record returned by the recordings server;
OperationResult is the success/failure envelope every operation returns.
"""

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

# ---------------------------------------------------------------------------
# Recording assets
# ---------------------------------------------------------------------------


class RecordingAsset(BaseModel):
    """A finished, uploaded recording as known to the server.

    Extra fields sent by the server are preserved but not interpreted.
    """

    model_config = ConfigDict(extra="allow")

    id: str | int
    filename: str = ""
    filepath: str = ""


class CapturedFile(BaseModel):
    """A packaged capture ready for upload."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class SessionState(StrEnum):
    """Possible states of the recording session controller."""

    idle = "idle"
    active = "active"


# ---------------------------------------------------------------------------
# Operation results
# ---------------------------------------------------------------------------


class FailureKind(StrEnum):
    """Discriminator for why an operation failed."""

    acquisition = "acquisition"  # Permission denied / no capture source
    network = "network"  # Request never completed
    rejected = "rejected"  # Server answered with a non-2xx status
    parse = "parse"  # Response body could not be decoded
    invalid_state = "invalid_state"  # Operation not allowed in current state


class Success(BaseModel):
    """Successful outcome carrying an optional value."""

    ok: Literal[True] = True
    value: Any = None


class Failure(BaseModel):
    """Failed outcome with a kind and a human-readable message."""

    ok: Literal[False] = False
    kind: FailureKind
    message: str


OperationResult = Success | Failure
