import logging

import httpx


logger = logging.getLogger(__name__)


DEFAULT_WEBHOOK_URL = "http://localhost:5678/webhook/generate-recipe"
TIMEOUT = 60 * 2


class UpstreamError(Exception):
    """The webhook failed or answered with something that is not a recipe."""


class RecipeWebhook:
    """Client for the workflow webhook that turns a prompt into a recipe."""

    def __init__(
        self,
        webhook_url: str = DEFAULT_WEBHOOK_URL,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = TIMEOUT,
    ) -> None:
        self.webhook_url = webhook_url
        self._owns_client = http_client is None
        self.client = (
            httpx.AsyncClient(
                headers={"Content-Type": "application/json"},
                timeout=timeout,
            )
            if http_client is None
            else http_client
        )

    async def generate(self, prompt: str) -> str:
        logger.info("Requesting recipe from %s", self.webhook_url)
        try:
            resp = await self.client.post(self.webhook_url, json={"prompt": prompt})
        except httpx.HTTPError as e:
            raise UpstreamError(f"Could not reach recipe generator: {e!r}") from e

        if not resp.is_success:
            logger.error("Webhook error: %s - %s", resp.status_code, resp.text)
            raise UpstreamError(f"HTTP error! status: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError("Recipe generator did not return JSON.") from e

        recipe = data.get("recipe") if isinstance(data, dict) else None
        if not isinstance(recipe, str) or not recipe.strip():
            logger.error("Invalid response from webhook: %s", data)
            raise UpstreamError("Invalid response format from recipe generator")

        return recipe

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
