import httpx
import pytest

from helpers import BASE_URL, FakeMetaso
from metaso_api.services.metaso import MetasoClient


@pytest.fixture
def fake_metaso() -> FakeMetaso:
    return FakeMetaso()


@pytest.fixture
def metaso_client(fake_metaso) -> MetasoClient:
    return MetasoClient(base_url=BASE_URL, transport=httpx.MockTransport(fake_metaso.handle))
