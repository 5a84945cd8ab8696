"""Functionality behind the routes."""

import logging

from forge.generation import RecipeWebhook, UpstreamError
from forge.models import ArtifactSummary, GeneratedArtifact, Origin
from forge.placeholders import PlaceholderRecipe
from forge.repository import ArtifactRepository, PersistenceError, is_valid_id
from forge.titles import derive_title, prompt_title, tidy


logger = logging.getLogger(__name__)


ANONYMOUS_OWNER = "anonymous@example.com"
LIST_LIMIT = 20


class ValidationError(Exception):
    pass


class IngestResult:
    def __init__(
        self,
        *,
        content: str,
        title: str,
        origin: Origin,
        artifact: GeneratedArtifact | None = None,
        error: str | None = None,
    ) -> None:
        self.content = content
        self.title = title
        self.origin = origin
        self.artifact = artifact
        self.error = error

    def __repr__(self) -> str:
        return f"<IngestResult(title={self.title}, saved={self.saved})>"

    @property
    def saved(self) -> bool:
        return self.artifact is not None

    @property
    def succeeded(self) -> bool:
        return self.origin is Origin.generated

    def to_dict(self) -> dict[str, str | bool]:
        data: dict[str, str | bool] = {
            "content": self.content,
            "title": self.title,
            "saved": self.saved,
            "origin": self.origin.value,
            "succeeded": self.succeeded,
        }
        if self.artifact is not None:
            data["id"] = self.artifact.id
        if self.error is not None:
            data["error"] = self.error
        return data


def clean_prompt(prompt: object) -> str:
    if not isinstance(prompt, str) or not prompt.strip():
        raise ValidationError("Valid prompt is required")
    return prompt.strip()


def clean_owner_key(owner_key: str | None, *, default: str = ANONYMOUS_OWNER) -> str:
    if owner_key is None or not owner_key.strip():
        return default
    return owner_key.strip().lower()


def check_id(id: str) -> str:
    if not is_valid_id(id):
        raise ValidationError("Invalid recipe ID")
    return id


async def generate_recipe(prompt: object, *, generator: RecipeWebhook) -> str:
    """Just the recipe text. Nothing is stored."""
    return await generator.generate(clean_prompt(prompt))


async def ingest_recipe(
    prompt: object,
    *,
    owner_key: str | None = None,
    title: str | None = None,
    generator: RecipeWebhook,
    repository: ArtifactRepository,
    placeholders: PlaceholderRecipe | None = None,
    anonymous_owner: str = ANONYMOUS_OWNER,
) -> IngestResult:
    """Generate a recipe, name it, and try to keep it.

    Generation failures become placeholder recipes and storage failures
    become `saved=False`. Only a bad prompt is rejected.
    """
    prompt = clean_prompt(prompt)
    owner_key = clean_owner_key(owner_key, default=anonymous_owner)
    placeholders = PlaceholderRecipe() if placeholders is None else placeholders

    try:
        content = await generator.generate(prompt)
    except UpstreamError as e:
        logger.warning("Recipe generation failed, using fallback: %s", e)
        origin = Origin.fallback
        content = placeholders.for_fallback(prompt)
    except Exception:
        logger.exception("Unexpected error generating recipe.")
        origin = Origin.error
        content = placeholders.for_error(prompt)
    else:
        origin = Origin.generated

    if title is not None and tidy(title):
        title = tidy(title)
    elif origin is Origin.generated:
        title = derive_title(content, prompt)
    else:
        title = prompt_title(prompt)
    logger.info("Recipe title: %s", title)

    try:
        artifact = await repository.create(
            title=title,
            prompt=prompt,
            content=content,
            owner_key=owner_key,
            origin=origin,
        )
    except PersistenceError as e:
        logger.error("Failed to save recipe: %r", e.__cause__ or e)
        return IngestResult(
            content=content,
            title=title,
            origin=origin,
            error=str(e),
        )

    logger.info("Recipe saved with id %s", artifact.id)
    return IngestResult(
        content=content,
        title=title,
        origin=origin,
        artifact=artifact,
    )


async def list_recipes(
    owner_key: str | None,
    *,
    repository: ArtifactRepository,
    limit: int = LIST_LIMIT,
) -> list[ArtifactSummary]:
    if owner_key is None or not owner_key.strip():
        raise ValidationError("Owner key is required")
    return await repository.list_for_owner(
        clean_owner_key(owner_key),
        limit=limit,
    )


async def get_recipe(id: str, *, repository: ArtifactRepository) -> GeneratedArtifact:
    return await repository.get(check_id(id))


async def delete_recipe(id: str, *, repository: ArtifactRepository) -> ArtifactSummary:
    artifact = await repository.delete(check_id(id))
    logger.info("Deleted recipe %s", artifact.id)
    return artifact.summary()
