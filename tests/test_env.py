"""Tests for env.py: the environment triple, credentials and shell export."""

import os

import pytest

from qcr.env import (
    API_KEY_VAR,
    BASE_URL_VAR,
    MODEL_VAR,
    CredentialSource,
    EnvManager,
    EnvTriple,
)

TRIPLE = EnvTriple(api_key="sk-test-1234567890", base_url="https://api.example.com/v1", model="gpt-4")


class TestEnvTriple:
    def test_as_environ(self):
        assert TRIPLE.as_environ() == {
            "OPENAI_API_KEY": "sk-test-1234567890",
            "OPENAI_BASE_URL": "https://api.example.com/v1",
            "OPENAI_MODEL": "gpt-4",
        }

    def test_masked(self):
        assert TRIPLE.masked()[API_KEY_VAR] == "sk-test-..."
        assert TRIPLE.masked()[MODEL_VAR] == "gpt-4"


class TestCredentialSource:
    def test_variable_for(self):
        assert CredentialSource.variable_for("anthropic") == "ANTHROPIC_API_KEY"
        assert CredentialSource.variable_for("my-provider") == "MY_PROVIDER_API_KEY"

    def test_fallback_to_openai_key(self):
        credentials = CredentialSource({"OPENAI_API_KEY": "sk-fallback"})
        assert credentials.get("google") == "sk-fallback"

    def test_missing(self):
        assert CredentialSource({}).get("google") is None

    def test_reads_os_environ_by_default(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "g-key")
        assert CredentialSource().get("google") == "g-key"


class TestEnvManager:
    def setup_method(self):
        self.environ = {}
        self.env_manager = EnvManager(self.environ)

    def test_apply_triple_is_repeatable(self):
        self.env_manager.apply_triple(TRIPLE)
        self.env_manager.apply_triple(EnvTriple("sk-other-1234567", "https://b.example.com", "m2"))

        assert self.environ == {
            API_KEY_VAR: "sk-other-1234567",
            BASE_URL_VAR: "https://b.example.com",
            MODEL_VAR: "m2",
        }

    def test_defaults_to_os_environ(self):
        EnvManager().apply_triple(TRIPLE)
        assert os.environ[MODEL_VAR] == "gpt-4"

    def test_read_triple_requires_all_three(self):
        self.environ.update({API_KEY_VAR: "k", BASE_URL_VAR: "https://x"})
        assert self.env_manager.read_triple() is None
        assert self.env_manager.missing_variables() == [MODEL_VAR]

        self.environ[MODEL_VAR] = "m"
        assert self.env_manager.read_triple() == EnvTriple("k", "https://x", "m")

    def test_blank_values_count_as_missing(self):
        self.environ.update({API_KEY_VAR: " ", BASE_URL_VAR: "https://x", MODEL_VAR: "m"})
        assert self.env_manager.read_triple() is None

    def test_validate_valid_triple(self):
        result = self.env_manager.validate_environment(TRIPLE.as_environ())
        assert result.is_valid
        assert result.warnings == []

    def test_validate_reports_missing_and_empty(self):
        result = self.env_manager.validate_environment({API_KEY_VAR: "", BASE_URL_VAR: "https://x"})

        assert "Environment variable OPENAI_API_KEY cannot be empty" in result.errors
        assert "Missing required environment variable: OPENAI_MODEL" in result.errors

    def test_validate_invalid_url(self):
        variables = dict(TRIPLE.as_environ(), OPENAI_BASE_URL="not a url")
        result = self.env_manager.validate_environment(variables)
        assert "OPENAI_BASE_URL is not a valid URL: not a url" in result.errors

    def test_validate_warnings(self):
        variables = {API_KEY_VAR: "short", BASE_URL_VAR: "http://localhost:8000/v1", MODEL_VAR: "m"}
        result = self.env_manager.validate_environment(variables)

        assert result.is_valid
        assert "OPENAI_BASE_URL does not use HTTPS, which may not be secure" in result.warnings
        assert "OPENAI_API_KEY seems unusually short, please verify it's correct" in result.warnings

    def test_build_child_env_keeps_other_variables(self):
        self.environ.update({"PATH": "/usr/bin", MODEL_VAR: "old"})
        child = self.env_manager.build_child_env(TRIPLE)

        assert child["PATH"] == "/usr/bin"
        assert child[MODEL_VAR] == "gpt-4"
        assert self.environ[MODEL_VAR] == "old"


class TestExportStatements:
    def setup_method(self):
        self.env_manager = EnvManager({})

    def test_posix(self):
        lines = self.env_manager.export_statements(TRIPLE, shell="sh")
        assert lines[0] == 'export OPENAI_API_KEY="sk-test-1234567890"'
        assert len(lines) == 3

    def test_posix_escaping(self):
        triple = EnvTriple(api_key='a"b$c`d\\e', base_url="https://x", model="m")
        line = self.env_manager.export_statements(triple, shell="sh")[0]
        assert line == 'export OPENAI_API_KEY="a\\"b\\$c\\`d\\\\e"'

    def test_fish(self):
        lines = self.env_manager.export_statements(TRIPLE, shell="fish")
        assert lines[2] == 'set -gx OPENAI_MODEL "gpt-4"'

    def test_powershell(self):
        triple = EnvTriple(api_key="it's", base_url="https://x", model="m")
        lines = self.env_manager.export_statements(triple, shell="powershell")
        assert lines[0] == "$env:OPENAI_API_KEY='it''s'"

    def test_cmd(self):
        lines = self.env_manager.export_statements(TRIPLE, shell="cmd")
        assert lines[1] == "set OPENAI_BASE_URL=https://api.example.com/v1"

    @pytest.mark.skipif(os.name == "nt", reason="Unix-like shells expected")
    def test_detects_fish_from_shell(self):
        env_manager = EnvManager({"SHELL": "/usr/local/bin/fish"})
        assert env_manager.export_statements(TRIPLE)[0].startswith("set -gx")
