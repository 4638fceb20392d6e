"""Boundary decision outcome."""

from dataclasses import dataclass
from enum import Enum


class BoundaryAction(Enum):
    """境界判定の結果種別"""

    SKIPPED = "skipped"
    CREATED = "created"
    EXTENDED = "extended"
    SPLIT = "split"
    FAILED = "failed"


@dataclass(frozen=True)
class BoundaryDecision:
    """Result of one boundary decision.

    Attributes:
        action: What the decision did to the conversation graph.
        conversation_id: Active conversation after the decision.
        closed_conversation_id: Conversation closed by a topic shift.
        reason: Short description for logs.
    """

    action: BoundaryAction
    conversation_id: str | None = None
    closed_conversation_id: str | None = None
    reason: str = ""

    @classmethod
    def skipped(cls, reason: str) -> "BoundaryDecision":
        return cls(action=BoundaryAction.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "BoundaryDecision":
        return cls(action=BoundaryAction.FAILED, reason=reason)
