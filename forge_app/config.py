from enum import Enum

from pydantic import field_validator
from pydantic_settings import BaseSettings

from forge.generation import DEFAULT_WEBHOOK_URL, TIMEOUT
from forge.placeholders import ERROR_RECIPE, FALLBACK_RECIPE
from forge.services import ANONYMOUS_OWNER, LIST_LIMIT


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    env: Env = Env.local
    db_url: str = "sqlite+aiosqlite:///recipes.db"
    webhook_url: str = DEFAULT_WEBHOOK_URL
    webhook_timeout: float = TIMEOUT
    anonymous_owner: str = ANONYMOUS_OWNER
    list_limit: int = LIST_LIMIT
    log_level: str = "INFO"
    fallback_template: str = FALLBACK_RECIPE
    error_template: str = ERROR_RECIPE

    @field_validator("fallback_template", "error_template")
    @classmethod
    def formats_with_prompt(cls, template: str) -> str:
        # Templates only get `{prompt}`.
        try:
            template.format(prompt="soup")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"Template must only use {{prompt}}: {e!r}") from e
        return template
