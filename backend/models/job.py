from dataclasses import dataclass
from enum import Enum
from typing import Generic, Literal, Optional, TypeVar

T = TypeVar("T")

FailureKind = Literal["transient", "terminal", "data_integrity", "not_ready"]

TERMINAL_SUCCESS_STATUSES = frozenset({"completed", "succeeded"})


class Resolution(str, Enum):
    SQUARE_480 = "480x480"
    PORTRAIT_480 = "480x854"
    LANDSCAPE_480 = "854x480"
    SQUARE_720 = "720x720"
    PORTRAIT_720 = "720x1280"
    LANDSCAPE_720 = "1280x720"
    SQUARE_1080 = "1080x1080"
    PORTRAIT_1080 = "1080x1920"
    LANDSCAPE_1080 = "1920x1080"

    @classmethod
    def from_value(cls, value: Optional[str]) -> Optional["Resolution"]:
        if not value:
            return None
        try:
            return cls(value.strip())
        except ValueError:
            return None


@dataclass(frozen=True)
class GenerationRequest:
    """Request to create a Sora video job"""
    prompt: str
    resolution: str
    duration_seconds: int

    def dimensions(self) -> tuple[str, str]:
        """Split ``WxH`` into ``(width, height)`` strings."""
        parts = (self.resolution or "").lower().split("x")
        if len(parts) != 2 or not all(p.strip().isdigit() for p in parts):
            raise ValueError(f"malformed resolution: {self.resolution!r}")
        width, height = (p.strip() for p in parts)
        return width, height


@dataclass(frozen=True)
class ContentRef:
    """Where the finished video lives: a generation id or a direct URL."""
    kind: Literal["generation", "url"]
    value: str


@dataclass(frozen=True)
class RemoteJobState:
    job_id: str
    status: str
    content: Optional[ContentRef] = None
    error: Optional[str] = None
    model: Optional[str] = None
    created_at: Optional[str] = None
    expires_at: Optional[str] = None

    @property
    def is_terminal_success(self) -> bool:
        return (self.status or "").lower() in TERMINAL_SUCCESS_STATUSES

    @property
    def generation_id(self) -> Optional[str]:
        if self.content and self.content.kind == "generation":
            return self.content.value
        return None

    @property
    def video_url(self) -> Optional[str]:
        if self.content and self.content.kind == "url":
            return self.content.value
        return None

    def to_dict(self) -> dict:
        return {
            "job_id": self.job_id,
            "status": self.status,
            "completed": self.is_terminal_success,
            "generation_id": self.generation_id,
            "video_url": self.video_url,
            "error": self.error,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
        }


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Success value or short user-facing failure message.

    ``cause`` keeps the underlying exception for logging and is never
    rendered to end users.
    """
    ok: bool
    value: Optional[T] = None
    message: Optional[str] = None
    kind: Optional[FailureKind] = None
    cause: Optional[BaseException] = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(
        cls,
        message: str,
        kind: FailureKind = "terminal",
        cause: Optional[BaseException] = None,
    ) -> "Outcome[T]":
        return cls(ok=False, message=message, kind=kind, cause=cause)
