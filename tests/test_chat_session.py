"""
Tests for the chat session controller and its transports.
"""
import json

import pytest
import requests

from chatbot.models import Role, Turn
from chatbot.services.chat_session import (
    ApiChatTransport,
    ChatSession,
    ChatTransport,
    ExchangeError,
    ExchangeState,
    GatewayTransport,
)
from chatbot.services.gateway import CompletionGateway
from conftest import FakeLLM, StatusError

GREETING = "Hello! I'm your chatbot assistant. How can I help you today?"


class ScriptedTransport(ChatTransport):
    """Replies from a list; an Exception item is raised instead of returned."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def complete(self, turns):
        self.calls.append(list(turns))
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, Exception):
            raise reply
        return reply


def make_response(status_code: int, body) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = body if isinstance(body, bytes) else json.dumps(body).encode()
    return response


class FakeHttp:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.posts = []

    def post(self, url, json=None):
        self.posts.append((url, json))
        if self.error is not None:
            raise self.error
        return self.response


class TestSessionStart:
    def test_seeded_with_one_greeting(self):
        session = ChatSession(ScriptedTransport(), greeting=GREETING)
        assert session.turns == (Turn(role=Role.ASSISTANT, content=GREETING),)
        assert session.pending is False
        assert session.state is ExchangeState.IDLE


class TestSubmitTurn:
    def test_hello_scenario(self):
        session = ChatSession(ScriptedTransport("Hi there!"), greeting=GREETING)
        reply = session.submit_turn("Hello")
        assert reply == Turn(role=Role.ASSISTANT, content="Hi there!")
        assert session.turns == (
            Turn(role=Role.ASSISTANT, content=GREETING),
            Turn(role=Role.USER, content="Hello"),
            Turn(role=Role.ASSISTANT, content="Hi there!"),
        )
        assert session.pending is False

    def test_sends_full_log_including_new_turn(self):
        transport = ScriptedTransport("one", "two")
        session = ChatSession(transport, greeting=GREETING)
        session.submit_turn("first")
        session.submit_turn("second")
        sent = transport.calls[1]
        assert [t.content for t in sent] == [GREETING, "first", "one", "second"]

    @pytest.mark.parametrize("k", [1, 2, 5])
    def test_log_grows_by_two_per_exchange(self, k):
        session = ChatSession(ScriptedTransport())
        for i in range(k):
            session.submit_turn(f"message {i}")
        assert len(session.turns) == 1 + 2 * k

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_text_is_ignored(self, text):
        transport = ScriptedTransport()
        session = ChatSession(transport)
        before = session.turns
        assert session.submit_turn(text) is None
        assert session.turns == before
        assert session.pending is False
        assert transport.calls == []

    def test_uses_and_clears_input_buffer(self):
        session = ChatSession(ScriptedTransport("Hi there!"))
        session.input_buffer = "Hello"
        session.submit_turn()
        assert session.input_buffer == ""
        assert session.turns[1].content == "Hello"

    def test_submission_while_pending_is_ignored(self):
        session = None
        nested = []

        class ReentrantTransport(ChatTransport):
            calls = 0

            def complete(self, turns):
                ReentrantTransport.calls += 1
                assert session.pending is True
                before = session.turns
                nested.append(session.submit_turn("again"))
                assert session.turns == before
                return "done"

        session = ChatSession(ReentrantTransport())
        session.submit_turn("Hello")
        assert nested == [None]
        assert ReentrantTransport.calls == 1
        assert len(session.turns) == 3
        assert session.pending is False


class TestFailures:
    def test_failure_becomes_error_turn(self):
        session = ChatSession(ScriptedTransport(ExchangeError("Rate limit exceeded")))
        reply = session.submit_turn("Hello")
        assert reply.role == Role.ASSISTANT
        assert reply.content == "Error: Rate limit exceeded"
        assert session.turns[-1] == reply
        assert session.pending is False

    def test_unexpected_exception_does_not_escape(self):
        session = ChatSession(ScriptedTransport(RuntimeError("boom")))
        reply = session.submit_turn("Hello")
        assert reply.content == "Error: boom"
        assert session.pending is False

    def test_can_resubmit_after_failure(self):
        session = ChatSession(ScriptedTransport(ExchangeError("Internal server error"), "Hi there!"))
        session.submit_turn("Hello")
        reply = session.submit_turn("Hello")
        assert reply.content == "Hi there!"
        assert len(session.turns) == 5

    def test_gateway_401_scenario(self):
        gateway = CompletionGateway(api_key="k", llm=FakeLLM(error=StatusError(401)))
        session = ChatSession(GatewayTransport(gateway))
        session.submit_turn("Hello")
        assert session.turns[-1] == Turn(role=Role.ASSISTANT, content="Error: Invalid API key")
        assert session.pending is False


class TestApiChatTransport:
    def test_posts_roles_and_contents(self):
        http = FakeHttp(make_response(200, {"message": "Hi there!"}))
        transport = ApiChatTransport("http://localhost:3333/", session=http)
        reply = transport.complete([Turn(role=Role.USER, content="Hello")])
        assert reply == "Hi there!"
        url, body = http.posts[0]
        assert url == "http://localhost:3333/api/chat"
        assert body == {"messages": [{"role": "user", "content": "Hello"}]}

    def test_error_body_becomes_diagnostic(self):
        http = FakeHttp(make_response(401, {"error": "Invalid API key"}))
        session = ChatSession(ApiChatTransport("http://x", session=http))
        session.submit_turn("Hello")
        assert session.turns[-1].content == "Error: Invalid API key"

    def test_error_without_message_is_generic(self):
        http = FakeHttp(make_response(500, {}))
        with pytest.raises(ExchangeError, match="Something went wrong"):
            ApiChatTransport("http://x", session=http).complete([])

    def test_success_without_reply_is_generic_failure(self):
        http = FakeHttp(make_response(200, {"unexpected": True}))
        with pytest.raises(ExchangeError, match="Something went wrong"):
            ApiChatTransport("http://x", session=http).complete([])

    def test_non_json_body_is_failure(self):
        http = FakeHttp(make_response(502, b"<html>Bad Gateway</html>"))
        with pytest.raises(ExchangeError):
            ApiChatTransport("http://x", session=http).complete([])

    def test_connection_error_text_is_kept(self):
        http = FakeHttp(error=requests.ConnectionError("Connection refused"))
        session = ChatSession(ApiChatTransport("http://x", session=http))
        session.submit_turn("Hello")
        assert session.turns[-1].content == "Error: Connection refused"
        assert session.pending is False


class TestEndToEnd:
    def test_session_through_api(self, client, fake_llm):
        """ApiChatTransport against the real app via the test client."""

        class ClientAdapter:
            def post(self, url, json=None):
                r = client.post(url.replace("http://testserver", ""), json=json)
                return make_response(r.status_code, r.content)

        session = ChatSession(ApiChatTransport("http://testserver", session=ClientAdapter()))
        session.submit_turn("Hello")
        assert session.turns[-1].content == "Hi there!"

        fake_llm.error = StatusError(429)
        session.submit_turn("Again")
        assert session.turns[-1].content == "Error: Rate limit exceeded"
        assert len(session.turns) == 5
