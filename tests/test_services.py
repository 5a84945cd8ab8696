import pytest

from fakes import BrokenRepository, ExplodingWebhook, SpyRepository, webhook_answering
from forge.generation import UpstreamError
from forge.models import Origin
from forge.placeholders import PlaceholderRecipe
from forge.repository import ArtifactNotFound, ArtifactRepository
from forge.services import (
    ValidationError,
    delete_recipe,
    generate_recipe,
    get_recipe,
    ingest_recipe,
    list_recipes,
)


GARLIC_RICE = "Recipe: Garlic Chicken Fried Rice\n\n#### Ingredients\n- Rice"


@pytest.mark.asyncio
async def test_ingest_recipe(repo: ArtifactRepository) -> None:
    webhook = webhook_answering(json={"recipe": GARLIC_RICE})

    got = await ingest_recipe(
        "  chicken and rice ",
        owner_key=" Cook@Example.com",
        generator=webhook,
        repository=repo,
    )

    assert got.title == "Garlic Chicken Fried Rice"
    assert got.content == GARLIC_RICE
    assert got.saved is True
    assert got.origin is Origin.generated
    assert got.succeeded is True

    assert got.artifact is not None
    stored = await repo.get(got.artifact.id)
    assert stored.prompt == "chicken and rice"
    assert stored.owner_key == "cook@example.com"
    assert stored.title == "Garlic Chicken Fried Rice"


@pytest.mark.asyncio
async def test_ingest_explicit_title_wins(repo: ArtifactRepository) -> None:
    webhook = webhook_answering(json={"recipe": GARLIC_RICE})
    got = await ingest_recipe(
        "chicken and rice",
        title="  Tuesday Rice ",
        generator=webhook,
        repository=repo,
    )
    assert got.title == "Tuesday Rice"


@pytest.mark.asyncio
async def test_ingest_blank_title_is_derived(repo: ArtifactRepository) -> None:
    webhook = webhook_answering(json={"recipe": GARLIC_RICE})
    got = await ingest_recipe(
        "chicken and rice",
        title="   ",
        generator=webhook,
        repository=repo,
    )
    assert got.title == "Garlic Chicken Fried Rice"


@pytest.mark.asyncio
async def test_ingest_anonymous_owner(repo: ArtifactRepository) -> None:
    webhook = webhook_answering(json={"recipe": GARLIC_RICE})
    await ingest_recipe("rice", generator=webhook, repository=repo)
    assert len(await repo.list_for_owner("anonymous@example.com")) == 1


@pytest.mark.asyncio
async def test_ingest_upstream_failure_is_a_fallback(repo: ArtifactRepository) -> None:
    webhook = webhook_answering(500, json={"error": "workflow crashed"})

    got = await ingest_recipe("chicken and rice", generator=webhook, repository=repo)

    assert got.origin is Origin.fallback
    assert got.succeeded is False
    assert got.saved is True
    assert got.title == "Recipe for chicken and rice"
    assert "chicken and rice" in got.content
    assert got.content == PlaceholderRecipe().for_fallback("chicken and rice")


@pytest.mark.asyncio
async def test_ingest_unexpected_failure_is_an_error(repo: ArtifactRepository) -> None:
    got = await ingest_recipe(
        "chicken and rice",
        generator=ExplodingWebhook(),
        repository=repo,
    )

    assert got.origin is Origin.error
    assert got.succeeded is False
    assert got.content == PlaceholderRecipe().for_error("chicken and rice")


@pytest.mark.asyncio
async def test_ingest_custom_placeholders(repo: ArtifactRepository) -> None:
    webhook = webhook_answering(503, json={})
    got = await ingest_recipe(
        "toast",
        generator=webhook,
        repository=repo,
        placeholders=PlaceholderRecipe(fallback="No {prompt} today."),
    )
    assert got.content == "No toast today."


@pytest.mark.asyncio
async def test_ingest_save_failure_keeps_content(database_url: str) -> None:
    webhook = webhook_answering(json={"recipe": GARLIC_RICE})

    got = await ingest_recipe(
        "chicken and rice",
        generator=webhook,
        repository=BrokenRepository(database_url),
    )

    assert got.saved is False
    assert got.content == GARLIC_RICE
    assert got.title == "Garlic Chicken Fried Rice"
    assert got.to_dict()["error"] == "Failed to save recipe"
    assert "id" not in got.to_dict()


@pytest.mark.parametrize("prompt", (None, "", "   ", 42))
@pytest.mark.asyncio
async def test_ingest_rejects_bad_prompt(database_url: str, prompt: object) -> None:
    seen = []
    webhook = webhook_answering(json={"recipe": GARLIC_RICE}, seen=seen)
    with pytest.raises(ValidationError):
        await ingest_recipe(
            prompt,
            generator=webhook,
            repository=SpyRepository(database_url),
        )
    assert seen == []


@pytest.mark.asyncio
async def test_generate_recipe() -> None:
    webhook = webhook_answering(json={"recipe": GARLIC_RICE})
    assert await generate_recipe(" rice ", generator=webhook) == GARLIC_RICE


@pytest.mark.asyncio
async def test_generate_recipe_propagates_upstream_error() -> None:
    webhook = webhook_answering(502, json={})
    with pytest.raises(UpstreamError):
        await generate_recipe("rice", generator=webhook)


@pytest.mark.asyncio
async def test_list_recipes(repo: ArtifactRepository) -> None:
    webhook = webhook_answering(json={"recipe": GARLIC_RICE})
    await ingest_recipe("rice", owner_key="cook@example.com", generator=webhook, repository=repo)

    got = await list_recipes("COOK@example.com ", repository=repo)

    assert [s.title for s in got] == ["Garlic Chicken Fried Rice"]


@pytest.mark.parametrize("owner_key", (None, "", "  "))
@pytest.mark.asyncio
async def test_list_recipes_requires_owner(database_url: str, owner_key: str | None) -> None:
    spy = SpyRepository(database_url)
    with pytest.raises(ValidationError):
        await list_recipes(owner_key, repository=spy)
    assert spy.calls == []


@pytest.mark.asyncio
async def test_get_and_delete_recipe(repo: ArtifactRepository) -> None:
    webhook = webhook_answering(json={"recipe": GARLIC_RICE})
    result = await ingest_recipe("rice", generator=webhook, repository=repo)
    assert result.artifact is not None
    id = result.artifact.id

    got = await get_recipe(id, repository=repo)
    assert got.content == GARLIC_RICE

    deleted = await delete_recipe(id, repository=repo)
    assert deleted.id == id
    assert "content" not in deleted.to_dict()

    with pytest.raises(ArtifactNotFound):
        await get_recipe(id, repository=repo)


@pytest.mark.parametrize("id", ("nope", "123", "Z" * 32))
@pytest.mark.asyncio
async def test_malformed_id_never_reaches_store(database_url: str, id: str) -> None:
    spy = SpyRepository(database_url)
    with pytest.raises(ValidationError):
        await get_recipe(id, repository=spy)
    with pytest.raises(ValidationError):
        await delete_recipe(id, repository=spy)
    assert spy.calls == []


@pytest.mark.asyncio
async def test_ingest_explicit_title_is_tidied(repo: ArtifactRepository) -> None:
    webhook = webhook_answering(json={"recipe": GARLIC_RICE})
    got = await ingest_recipe(
        "chicken and rice",
        title="  Tuesday    Night\tRice! ",
        generator=webhook,
        repository=repo,
    )
    assert got.title == "Tuesday Night Rice"
    assert got.artifact is not None
    assert (await repo.get(got.artifact.id)).title == "Tuesday Night Rice"
