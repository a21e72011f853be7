"""
Content flags raised by automatic moderation and the types the review queue
works with.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from modwatch.datatypes.discord_datatypes import MessageID


class FlagType(Enum):
    """Category of a detected policy violation."""

    HATE_SPEECH = "HATE_SPEECH"
    HARASSMENT = "HARASSMENT"
    SPAM = "SPAM"
    NSFW = "NSFW"
    VIOLENCE = "VIOLENCE"
    SELF_HARM = "SELF_HARM"
    OTHER = "OTHER"

    def __str__(self) -> str:
        return self.value


class QueueAction(Enum):
    """Decision a human moderator can take on a stored flag."""

    RESOLVE = "resolve"
    DISMISS = "dismiss"
    ESCALATE = "escalate"

    def __str__(self) -> str:
        return self.value


def clamp_severity(value: float) -> float:
    """Clamp a classifier score into ``[0.0, 1.0]``; NaN becomes 0.0."""
    score = float(value)
    if math.isnan(score):
        return 0.0
    return min(max(score, 0.0), 1.0)


@dataclass(slots=True, frozen=True)
class ClassificationResult:
    """Verdict returned by a content classifier.

    Attributes:
        flagged: Whether the text violates policy.
        category: Primary violation category (OTHER when not flagged).
        severity: Score of the primary category in ``[0.0, 1.0]``.
        raw: Provider payload, kept verbatim for audit and appeals.
    """

    flagged: bool
    category: FlagType = FlagType.OTHER
    severity: float = 0.0
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def clean(cls, raw: Dict[str, Any] | None = None) -> "ClassificationResult":
        return cls(flagged=False, category=FlagType.OTHER, severity=0.0, raw=raw or {})


@dataclass(slots=True)
class ModerationFlag:
    """Stored record of automatically detected content.

    ``resolved``, ``resolved_by`` and ``resolved_at`` move together: an
    unresolved flag has neither resolver nor timestamp.
    """

    id: str
    content: str
    flag_type: FlagType
    severity: float
    api_response: Dict[str, Any]
    created_at: datetime
    artwork_id: str | None = None
    message_id: MessageID | None = None
    resolved: bool = False
    resolved_by: str | None = None
    resolved_at: datetime | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.severity <= 1.0:
            raise ValueError(f"severity must be within [0.0, 1.0], got {self.severity}")
        if not self.resolved and (self.resolved_by is not None or self.resolved_at is not None):
            raise ValueError("an unresolved flag cannot carry a resolver or resolution time")
        if self.resolved and (self.resolved_by is None or self.resolved_at is None):
            raise ValueError("a resolved flag needs both resolver and resolution time")

    @property
    def is_escalated(self) -> bool:
        return bool(self.api_response.get("escalated"))


@dataclass(slots=True, frozen=True)
class UploaderSummary:
    id: str
    username: str | None
    avatar: str | None


@dataclass(slots=True, frozen=True)
class ArtworkSummary:
    """Gallery artwork a flag points at, with its uploader."""

    id: str
    title: str | None
    published: bool
    user: UploaderSummary | None


@dataclass(slots=True)
class FlagPage:
    """One page of the review queue."""

    flags: List[Dict[str, Any]]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> Dict[str, int]:
        return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}
