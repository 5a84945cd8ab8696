from datetime import datetime
from enum import Enum
from typing import Any


class Origin(Enum):
    generated = "generated"
    fallback = "fallback"
    error = "error"


class ArtifactSummary:
    """What a listing needs. No content."""

    def __init__(
        self,
        *,
        id: str,
        title: str,
        prompt: str,
        origin: Origin,
        succeeded: bool,
        created_at: datetime,
    ) -> None:
        self.id = id
        self.title = title
        self.prompt = prompt
        self.origin = origin
        self.succeeded = succeeded
        self.created_at = created_at

    def __repr__(self) -> str:
        return f"<ArtifactSummary(id={self.id}, title={self.title})>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "prompt": self.prompt,
            "origin": self.origin.value,
            "succeeded": self.succeeded,
            "createdAt": self.created_at.isoformat(),
        }


class GeneratedArtifact(ArtifactSummary):
    def __init__(
        self,
        *,
        id: str,
        title: str,
        prompt: str,
        content: str,
        owner_key: str,
        origin: Origin,
        created_at: datetime,
    ) -> None:
        super().__init__(
            id=id,
            title=title,
            prompt=prompt,
            origin=origin,
            succeeded=origin is Origin.generated,
            created_at=created_at,
        )
        self.content = content
        self.owner_key = owner_key

    def __repr__(self) -> str:
        return f"<GeneratedArtifact(id={self.id}, title={self.title})>"

    def __str__(self) -> str:
        return self.content

    def summary(self) -> ArtifactSummary:
        return ArtifactSummary(
            id=self.id,
            title=self.title,
            prompt=self.prompt,
            origin=self.origin,
            succeeded=self.succeeded,
            created_at=self.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "content": self.content,
            "ownerKey": self.owner_key,
        }
