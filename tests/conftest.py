from pathlib import Path
from typing import AsyncIterator

import pytest
import pytest_asyncio

from fakes import db_url
from forge.repository import ArtifactRepository


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return db_url(tmp_path / "recipes.db")


@pytest_asyncio.fixture
async def repo(database_url: str) -> AsyncIterator[ArtifactRepository]:
    repository = ArtifactRepository(database_url)
    await repository.connect()
    yield repository
    await repository.disconnect()
