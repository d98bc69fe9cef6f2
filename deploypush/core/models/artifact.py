"""
Artifact models — what the build stage hands to the rest of the pipeline.

RealizedArtifact is a tagged union rather than a flag: a store-path
artifact and a content-addressed artifact are different types, and
only the build stage can create either. Sign and copy accept only a
VerifiedArtifact, which only the activation verifier creates, so an
artifact that has not been checked cannot be transferred.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class StorePathArtifact(BaseModel):
    """A profile that was already a concrete store path before building."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["store_path"] = "store_path"
    path: str
    derivation: str = ""

    @property
    def content_addressed(self) -> bool:
        return False


class ContentAddressedArtifact(BaseModel):
    """A content-addressed profile; ``path`` is the realized output."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["content_addressed"] = "content_addressed"
    path: str

    @property
    def content_addressed(self) -> bool:
        return True


RealizedArtifact = Annotated[
    Union[StorePathArtifact, ContentAddressedArtifact],
    Field(discriminator="kind"),
]


class VerifiedArtifact(BaseModel):
    """An artifact whose activation entry points have been checked."""

    model_config = ConfigDict(frozen=True)

    artifact: RealizedArtifact

    @property
    def path(self) -> str:
        return self.artifact.path

    @property
    def content_addressed(self) -> bool:
        return self.artifact.content_addressed
