"""Stream units: provider fragments in, pipeline events out."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..types import FragmentKind, PipelineEventType


class StreamFragment(BaseModel):
    """One decoded piece of a provider stream: reasoning or answer text."""

    model_config = ConfigDict(frozen=True)

    kind: FragmentKind
    text: str


class PipelineEvent(BaseModel):
    """Progress unit emitted by the agentic pipeline."""

    model_config = ConfigDict(frozen=True)

    type: PipelineEventType
    pass_number: int = Field(ge=1)
    pass_name: str
    total_passes: int = Field(ge=1)
    data: str | None = None

    def to_wire(self) -> dict:
        """JSON payload for one SSE frame."""
        payload: dict = {
            "type": self.type,
            "pass": self.pass_number,
            "passName": self.pass_name,
            "totalPasses": self.total_passes,
        }
        if self.data is not None:
            payload["data"] = self.data
        return payload
