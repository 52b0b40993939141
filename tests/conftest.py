"""
Pytest fixtures: in-memory store with provisioned keys, test client, auth headers.
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from main import create_app
from services.credential_service import CredentialResolver
from services.site_config_service import SiteConfigService
from store.errors import StoreError
from store.memory import InMemoryStore

VALID_KEY = "6b5ef619bc4212854b7b506839fe960cbdca45ba602d9ac1bce511f37e5eaf86"
OTHER_KEY = "0f1e2d3c4b5a69788796a5b4c3d2e1f00f1e2d3c4b5a69788796a5b4c3d2e1f0"
DISABLED_KEY = "disabled-key-0000000000000000000000000000000000000000000000000000"
USER_A = "d74df522-1750-4b94-954f-5898f6b0a72d"
USER_B = "5f0c7a43-2b1e-4d3a-9f11-7c2b8e6a9d10"


class RecordingStore(InMemoryStore):
    """
    InMemoryStore that records each call and can be told to fail.
    Set ``failures[op]`` to an exception to raise it on the next calls to ``op``.
    """

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []
        self.failures: dict[str, Exception] = {}

    def _enter(self, op: str) -> None:
        self.calls.append(op)
        if op in self.failures:
            raise self.failures[op]

    async def find_credential(self, api_key: str):
        self._enter("find_credential")
        return await super().find_credential(api_key)

    async def touch_credential(self, credential_id: str, used_at: datetime) -> None:
        self._enter("touch_credential")
        await super().touch_credential(credential_id, used_at)

    async def find_site(self, site_id: str, user_id: str):
        self._enter("find_site")
        return await super().find_site(site_id, user_id)

    async def insert_site(self, site_id: str, user_id: str):
        self._enter("insert_site")
        return await super().insert_site(site_id, user_id)

    async def find_config(self, site_key: str):
        self._enter("find_config")
        return await super().find_config(site_key)

    async def insert_config(self, site_key: str, values):
        self._enter("insert_config")
        return await super().insert_config(site_key, values)

    async def update_config(self, site_key: str, changes):
        self._enter("update_config")
        return await super().update_config(site_key, changes)

    async def ping(self) -> bool:
        return "ping" not in self.failures


@pytest.fixture
def store() -> RecordingStore:
    s = RecordingStore()
    s.add_credential(VALID_KEY, USER_A, name="Development Key")
    s.add_credential(OTHER_KEY, USER_B, name="Second tenant")
    s.add_credential(DISABLED_KEY, USER_A, is_active=False)
    return s


@pytest.fixture
def storage_down() -> StoreError:
    return StoreError("connection refused", code="PGRST000")


@pytest.fixture
def resolver(store: RecordingStore) -> CredentialResolver:
    return CredentialResolver(store)


@pytest.fixture
def service(store: RecordingStore) -> SiteConfigService:
    return SiteConfigService(store)


@pytest.fixture
def client(store: RecordingStore) -> TestClient:
    """Test client over the in-memory store. Lifespan runs inside the with-block."""
    with TestClient(create_app(store=store)) as c:
        yield c


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"x-api-key": VALID_KEY}


@pytest.fixture
def other_auth_headers() -> dict[str, str]:
    return {"x-api-key": OTHER_KEY}
