from datetime import datetime, timezone
import logging
import re
from typing import Any, Mapping
from uuid import uuid4

from databases import Database

from forge.models import ArtifactSummary, GeneratedArtifact, Origin


logger = logging.getLogger(__name__)


CREATE_ARTIFACTS_TABLE = """
CREATE TABLE IF NOT EXISTS Artifacts (
    id VARCHAR(32) PRIMARY KEY,
    title VARCHAR(256) NOT NULL,
    prompt TEXT NOT NULL,
    content TEXT NOT NULL,
    owner_key VARCHAR(320) NOT NULL,
    origin VARCHAR(16) NOT NULL,
    succeeded BOOLEAN NOT NULL,
    created_at VARCHAR(32) NOT NULL
)
"""


CREATE_OWNER_INDEX = """
CREATE INDEX IF NOT EXISTS ix_artifacts_owner_created
ON Artifacts (owner_key, created_at DESC)
"""


CREATE_ARTIFACT = """
INSERT INTO Artifacts(id, title, prompt, content, owner_key, origin, succeeded, created_at)
VALUES (:id, :title, :prompt, :content, :owner_key, :origin, :succeeded, :created_at)
"""


GET_ARTIFACT = "SELECT * FROM Artifacts WHERE id = :id"


LIST_ARTIFACTS = """
SELECT id, title, prompt, origin, succeeded, created_at FROM Artifacts
WHERE owner_key = :owner_key
ORDER BY created_at DESC
LIMIT :limit
"""


DELETE_ARTIFACT = "DELETE FROM Artifacts WHERE id = :id RETURNING *"


ID_FORMAT = re.compile(r"[0-9a-f]{32}")


class ArtifactNotFound(Exception):
    pass


class PersistenceError(Exception):
    pass


def is_valid_id(id: str) -> bool:
    return ID_FORMAT.fullmatch(id) is not None


def timestamp(moment: datetime) -> str:
    # Fixed width, UTC, so the column sorts as text.
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def summary_from_record(record: Mapping[str, Any]) -> ArtifactSummary:
    return ArtifactSummary(
        id=record["id"],
        title=record["title"],
        prompt=record["prompt"],
        origin=Origin(record["origin"]),
        succeeded=bool(record["succeeded"]),
        created_at=datetime.fromisoformat(record["created_at"]),
    )


def artifact_from_record(record: Mapping[str, Any]) -> GeneratedArtifact:
    return GeneratedArtifact(
        id=record["id"],
        title=record["title"],
        prompt=record["prompt"],
        content=record["content"],
        owner_key=record["owner_key"],
        origin=Origin(record["origin"]),
        created_at=datetime.fromisoformat(record["created_at"]),
    )


class ArtifactRepository:
    """Generated artifacts, one row each. Rows are never updated."""

    def __init__(self, db: Database | str) -> None:
        self.db = Database(db) if isinstance(db, str) else db

    async def connect(self) -> None:
        if self.db.is_connected:
            return
        try:
            await self.db.connect()
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                query=CREATE_ARTIFACTS_TABLE
            )
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                query=CREATE_OWNER_INDEX
            )
        except Exception as e:
            raise PersistenceError(
                f"Could not connect to {self.db.url.obscure_password}"
            ) from e
        logger.info("Connected to artifact store.")

    async def disconnect(self) -> None:
        if self.db.is_connected:
            await self.db.disconnect()

    async def create(
        self,
        *,
        title: str,
        prompt: str,
        content: str,
        owner_key: str,
        origin: Origin,
        created_at: datetime | None = None,
    ) -> GeneratedArtifact:
        created_at = datetime.now(timezone.utc) if created_at is None else created_at
        artifact = GeneratedArtifact(
            id=uuid4().hex,
            title=title,
            prompt=prompt,
            content=content,
            owner_key=owner_key,
            origin=origin,
            created_at=datetime.fromisoformat(timestamp(created_at)),
        )
        try:
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                CREATE_ARTIFACT,
                values={
                    "id": artifact.id,
                    "title": artifact.title,
                    "prompt": artifact.prompt,
                    "content": artifact.content,
                    "owner_key": artifact.owner_key,
                    "origin": artifact.origin.value,
                    "succeeded": artifact.succeeded,
                    "created_at": timestamp(artifact.created_at),
                },
            )
        except Exception as e:
            raise PersistenceError("Failed to save recipe") from e
        return artifact

    async def list_for_owner(
        self,
        owner_key: str,
        *,
        limit: int = 20,
    ) -> list[ArtifactSummary]:
        try:
            result = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
                LIST_ARTIFACTS, values={"owner_key": owner_key, "limit": limit}
            )
        except Exception as e:
            raise PersistenceError("Failed to query recipes") from e
        return [summary_from_record(r) for r in result]

    async def get(self, id: str) -> GeneratedArtifact:
        try:
            result = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
                GET_ARTIFACT, values={"id": id}
            )
        except Exception as e:
            raise PersistenceError("Failed to fetch recipe") from e

        if result is None:
            raise ArtifactNotFound(f"{id}")

        return artifact_from_record(result)

    async def delete(self, id: str) -> GeneratedArtifact:
        # One statement, so only one of two racing deletes gets the row.
        try:
            result = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
                DELETE_ARTIFACT, values={"id": id}
            )
        except Exception as e:
            raise PersistenceError("Failed to delete recipe") from e

        if result is None:
            raise ArtifactNotFound(f"{id}")

        return artifact_from_record(result)
