"""Data models for normalization output."""

from typing import Any

from pydantic import BaseModel, Field


class NormalizationResult(BaseModel):
    """Normalized document plus its workflow-only side channel."""

    document: dict[str, Any]
    workflow_only: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)

    def orders(self, root_key: str = "orders") -> list[dict[str, Any]]:
        return self.document.get(root_key, [])
