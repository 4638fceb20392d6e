"""Topic classification and summarization results."""

from dataclasses import dataclass, field

from continuum.domain.entities.conversation import Decision


@dataclass(frozen=True)
class ConversationMetadata:
    """分類時に渡すアクティブな会話のメタデータ"""

    title: str | None = None
    tags: list[str] = field(default_factory=list)
    summary: str | None = None


@dataclass(frozen=True)
class ClassificationResult:
    """Topic classification result.

    Attributes:
        same_topic: Whether the recent messages continue the active conversation.
        new_tags: Tags describing the new topic (on a shift).
        suggested_title: Title suggested for the conversation.
    """

    same_topic: bool
    new_tags: list[str] | None = None
    suggested_title: str | None = None


@dataclass(frozen=True)
class ConversationSummary:
    """Summary of a closed conversation."""

    title: str | None = None
    summary: str | None = None
    tags: list[str] = field(default_factory=list)
    decisions: list[Decision] = field(default_factory=list)
