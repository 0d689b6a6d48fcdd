"""
Pytest configuration and fixtures for the test suite.
"""
import os
from types import SimpleNamespace
from typing import Generator, List

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

# Set test environment before importing config / the app
os.environ["APP_ENV"] = "development"
os.environ["OPENROUTER_API_KEY"] = "test-key"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_ANON_KEY"] = ""
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = ""

import chatbot.main as main_module
from chatbot.services.gateway import CompletionGateway


# ============================================================================
# Completion gateway fakes
# ============================================================================

class StatusError(Exception):
    """Stand-in for an openai.APIStatusError: only status_code matters to the gateway."""

    def __init__(self, status_code: int, message: str = "provider error"):
        super().__init__(f"Error code: {status_code} - {message}")
        self.status_code = status_code


class FakeLLM:
    """Records every invoke() and answers with a fixed reply or raises a fixed error."""

    def __init__(self, reply="Hi there!", error: Exception = None):
        self.reply = reply
        self.error = error
        self.calls: List[list] = []

    def invoke(self, messages):
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        if isinstance(self.reply, str):
            return AIMessage(content=self.reply)
        return self.reply


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def gateway(fake_llm: FakeLLM) -> CompletionGateway:
    return CompletionGateway(api_key="test-key", llm=fake_llm)


@pytest.fixture
def client(gateway: CompletionGateway, monkeypatch) -> Generator[TestClient, None, None]:
    """Test client with the gateway swapped for one backed by FakeLLM (lifespan not run)."""
    monkeypatch.setattr(main_module, "gateway_service", gateway)
    monkeypatch.setattr(main_module, "conversation_store", None)
    yield TestClient(main_module.app)


# ============================================================================
# Supabase fake
# ============================================================================

class FakeQuery:
    """Chainable query builder that records calls and returns canned data on execute()."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.ops = []

    def __getattr__(self, name):
        if name not in {"select", "insert", "update", "eq", "order", "limit"}:
            raise AttributeError(name)

        def method(*args, **kwargs):
            self.ops.append((name, args, kwargs))
            return self
        return method

    def execute(self):
        self.db.executed.append((self.table, self.ops))
        failure = self.db.failures.get(self.table)
        if failure is not None:
            raise failure
        inserts = [args[0] for name, args, _ in self.ops if name == "insert"]
        if inserts:
            row = dict(inserts[0])
            row.setdefault("id", f"{self.table}-{len(self.db.executed)}")
            self.db.rows.setdefault(self.table, []).append(row)
            return SimpleNamespace(data=[row])
        return SimpleNamespace(data=self.db.responses.get(self.table, []))


class FakeRPC:
    def __init__(self, db: "FakeSupabase", name: str, params: dict):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        self.db.rpc_calls.append((self.name, self.params))
        if self.db.rpc_error is not None:
            raise self.db.rpc_error
        return SimpleNamespace(data=None)


class FakeSupabase:
    def __init__(self):
        self.executed = []
        self.rows = {}
        self.responses = {}
        self.failures = {}
        self.rpc_calls = []
        self.rpc_error = None

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict) -> FakeRPC:
        return FakeRPC(self, name, params)


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()
