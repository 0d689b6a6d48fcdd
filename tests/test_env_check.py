"""
Tests for the pre-development environment checks.
"""
import pytest

from chatbot.services.gateway import CompletionGateway
from chatbot.utils import env_check
from conftest import FakeLLM, StatusError


class TestVersionAndFiles:
    def test_python_version(self):
        env_check.check_python_version((3, 12))
        with pytest.raises(env_check.CheckFailed):
            env_check.check_python_version((3, 8))

    def test_env_file_copied_from_template(self, tmp_path):
        template = tmp_path / ".env.example"
        template.write_text("OPENROUTER_API_KEY=your_openrouter_api_key_here\n")
        env_path = tmp_path / ".env"
        env_check.check_env_file(env_path, template)
        assert env_path.read_text() == template.read_text()

    def test_env_file_missing_template(self, tmp_path):
        with pytest.raises(env_check.CheckFailed):
            env_check.check_env_file(tmp_path / ".env", tmp_path / "missing.example")


class TestApiKeys:
    @pytest.mark.parametrize(
        "values",
        [{}, {"OPENROUTER_API_KEY": ""}, {"OPENROUTER_API_KEY": "your_openrouter_api_key_here"}],
    )
    def test_missing_or_placeholder(self, values):
        assert env_check.missing_keys(values) == ["OPENROUTER_API_KEY"]

    def test_configured(self, tmp_path):
        env_path = tmp_path / ".env"
        env_path.write_text("OPENROUTER_API_KEY=sk-or-real\n")
        assert env_check.check_api_keys(env_path) == []


class TestDependencies:
    def test_reports_missing_modules(self):
        missing = env_check.check_dependencies(modules=("fastapi", "surely_not_installed_module"), optional=())
        assert missing == ["surely_not_installed_module"]


class TestPing:
    def test_ping_success(self):
        llm = FakeLLM(reply="API test successful")
        assert env_check.ping_gateway(CompletionGateway(api_key="k", llm=llm)) is True
        assert "API test successful" in llm.calls[0][0].content

    def test_ping_failure(self):
        gateway = CompletionGateway(api_key="k", llm=FakeLLM(error=StatusError(401)))
        assert env_check.ping_gateway(gateway) is False
