import json
import os
import sys
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault('APP_ENV', 'test')
for _key in ('N8N_URL', 'N8N_API_KEY', 'N8N_WORKFLOW_ID', 'N8N_DIALECT', 'N8N_STRICT_PARSING', 'DATABASE_URL'):
    os.environ.pop(_key, None)

from app.config import Settings  # noqa: E402

API_KEY = 'test-api-key'
WORKFLOW_ID = 'wf-abc'
CANONICAL_ID = '42'
BASE_URL = 'https://n8n.example.com'


def make_settings(**overrides) -> Settings:
    values = {
        'N8N_URL': BASE_URL + '/',
        'N8N_API_KEY': API_KEY,
        'N8N_WORKFLOW_ID': WORKFLOW_ID,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeN8N:
    """In-memory n8n exposing the public v1 API and the older /rest API."""

    def __init__(self, active: bool = False):
        self.active = active
        self.requests: list[httpx.Request] = []
        # "METHOD /path" -> (status, body) returned instead of the normal handling
        self.failures: dict[str, tuple[int, str]] = {}

    def workflow(self) -> dict:
        return {'id': CANONICAL_ID, 'name': 'Daily email sender', 'active': self.active}

    @property
    def calls(self) -> list[str]:
        return [f'{r.method} {r.url.path}' for r in self.requests]

    def fail(self, call: str, status_code: int = 404, text: str = 'Not Found') -> None:
        self.failures[call] = (status_code, text)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        call = f'{request.method} {request.url.path}'
        if call in self.failures:
            status_code, text = self.failures[call]
            return httpx.Response(status_code, text=text)
        if request.headers.get('X-N8N-API-KEY') != API_KEY:
            return httpx.Response(401, json={'message': 'unauthorized'})

        ids = (WORKFLOW_ID, CANONICAL_ID)
        parts = request.url.path.strip('/').split('/')
        if parts[:3] == ['api', 'v1', 'workflows'] and len(parts) >= 4 and parts[3] in ids:
            rest = parts[4:]
        elif parts[:2] == ['rest', 'workflows'] and len(parts) >= 3 and parts[2] in ids:
            rest = parts[3:]
        else:
            return httpx.Response(404, text='Not Found')

        if request.method == 'GET' and not rest:
            return httpx.Response(200, json=self.workflow())
        if request.method == 'PUT' and not rest:
            self.active = bool(json.loads(request.content)['active'])
            return httpx.Response(200, json=self.workflow())
        if request.method == 'POST' and rest in (['activate'], ['deactivate']):
            self.active = rest[0] == 'activate'
            return httpx.Response(200, json=self.workflow())
        return httpx.Response(405, text='Method Not Allowed')


@pytest.fixture
def fake_n8n() -> FakeN8N:
    return FakeN8N()


@pytest_asyncio.fixture
async def n8n_client(fake_n8n):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_n8n.handler)) as client:
        yield client
