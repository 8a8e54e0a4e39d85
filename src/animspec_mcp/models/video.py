"""Video transport parts — exactly one is chosen per request."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class InlineVideo(BaseModel):
    """Video bytes embedded directly in the model request."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["inline"] = "inline"
    data: bytes
    mime_type: str


class RemoteVideo(BaseModel):
    """Video uploaded to the provider's file store and referenced by URI.

    ``name`` is the provider resource name used for deletion; it is empty for
    URIs the caller uploaded themselves, which are never cleaned up here.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["remote"] = "remote"
    uri: str
    mime_type: str
    name: str = ""


VideoPart = Annotated[Union[InlineVideo, RemoteVideo], Field(discriminator="kind")]
