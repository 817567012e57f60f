"""Classification and tag-suggestion models produced by the remote LLM."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from lifeos_memory.models.memory import MemoryCategory

# Fixed ten-colour palette the tag suggester may assign.
TAG_COLOR_PALETTE: dict[str, str] = {
    "#3b82f6": "blue",
    "#ef4444": "red",
    "#10b981": "green",
    "#f59e0b": "amber",
    "#8b5cf6": "purple",
    "#ec4899": "pink",
    "#06b6d4": "cyan",
    "#84cc16": "lime",
    "#f97316": "orange",
    "#6366f1": "indigo",
}


class Classification(BaseModel):
    """Summary, key entities/insights and category for one piece of content.

    ``is_fallback`` is ``True`` when the remote classifier failed and the
    deterministic fallback (category ``general``, summary = content prefix)
    was used instead.
    """

    model_config = ConfigDict(frozen=True)

    summary: str
    entities_or_insights: list[str] = Field(default_factory=list)
    category: MemoryCategory = MemoryCategory.GENERAL
    is_fallback: bool = False


class TagSuggestion(BaseModel):
    """One proposed free-form tag."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Lowercase tag name, one or two words.")
    color: str = Field(description="Hex colour from TAG_COLOR_PALETTE.")
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""
