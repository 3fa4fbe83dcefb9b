import os
import sqlite3
import tempfile
from contextlib import closing
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

TEST_DB_PATH = Path(tempfile.gettempdir()) / "call_analytics_test.db"
WEBHOOK_SECRET = "test-webhook-secret"
TEST_DB_PATH.unlink(missing_ok=True)

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["ELEVENLABS_WEBHOOK_SECRET"] = WEBHOOK_SECRET
os.environ["ELEVENLABS_API_KEY"] = "test-elevenlabs-key"
os.environ["PINECONE_API_KEY"] = "test-pinecone-key"
os.environ["PINECONE_HOST"] = "test-index.svc.pinecone.io"

from call_analytics.core import deps  # noqa: E402
from call_analytics.main import app  # noqa: E402


class FakeAgentDirectory:
    def __init__(self, names=None, error=None):
        self.names = names or {}
        self.error = error
        self.requested = []

    async def get_agent_name(self, agent_id):
        self.requested.append(agent_id)
        if self.error:
            raise self.error
        return self.names.get(agent_id)


class FakeKnowledgeIndex:
    def __init__(self, hits=None, error=None):
        self.hits = hits or []
        self.error = error
        self.calls = []

    async def search(self, query, top_k, metadata_filter=None):
        self.calls.append({"query": query, "top_k": top_k, "filter": metadata_filter})
        if self.error:
            raise self.error
        return self.hits


def query_db(sql, params=()):
    with closing(sqlite3.connect(TEST_DB_PATH)) as connection:
        return connection.execute(sql, params).fetchall()


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    if not TEST_DB_PATH.exists():
        return
    with closing(sqlite3.connect(TEST_DB_PATH)) as connection:
        tables = {row[0] for row in connection.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
        for table in ("feedback", "calls"):
            if table in tables:
                connection.execute(f"DELETE FROM {table}")
        connection.commit()


@pytest.fixture()
def agent_directory():
    return FakeAgentDirectory(names={"agent_123": "Front Desk Agent"})


@pytest.fixture()
def knowledge_index():
    return FakeKnowledgeIndex()


@pytest.fixture()
def client(agent_directory, knowledge_index):
    app.dependency_overrides[deps.get_agent_directory] = lambda: agent_directory
    app.dependency_overrides[deps.get_knowledge_index] = lambda: knowledge_index
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
