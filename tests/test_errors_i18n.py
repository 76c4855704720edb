"""Tests for error variants, error results and bilingual rendering."""

import pytest

from qcr.errors import (
    CommandError,
    ConfigurationNotFound,
    CredentialMissing,
    ExitCode,
    ModelUnsupported,
    NoDefaultConfiguration,
    ProviderMissing,
    RuntimeApiKeyRequired,
    command_boundary,
    config_file_not_found,
    config_not_found,
    config_validation_error,
    create_error_result,
    invalid_arguments,
    process_launch_error,
    resolution_error,
)
from qcr.i18n import CHINESE, ENGLISH, MESSAGES, PROBLEM_TEMPLATES, SUGGESTIONS, detect_language, get_text, render
from qcr.types import CommandResult


class TestDetectLanguage:
    def test_forced_language(self):
        assert detect_language({"QCR_LANG": "zh", "LANG": "en_US.UTF-8"}) == CHINESE
        assert detect_language({"QCR_LANG": "EN", "LANG": "zh_CN.UTF-8"}) == ENGLISH

    @pytest.mark.parametrize("lang", ["zh_CN.UTF-8", "Chinese_China.936", "zh-TW"])
    def test_chinese_locales(self, lang):
        assert detect_language({"LANG": lang}) == CHINESE

    def test_falls_back_to_language_and_lc_all(self):
        assert detect_language({"LANGUAGE": "zh_CN"}) == CHINESE
        assert detect_language({"LC_ALL": "zh_CN.UTF-8"}) == CHINESE

    def test_default_is_english(self):
        assert detect_language({}) == ENGLISH
        assert detect_language({"QCR_LANG": "fr", "LANG": "fr_FR.UTF-8"}) == ENGLISH


class TestRender:
    def test_every_template_has_both_languages(self):
        for table in (MESSAGES, SUGGESTIONS, PROBLEM_TEMPLATES):
            for key, entry in table.items():
                assert set(entry) == {ENGLISH, CHINESE}, key

    def test_render_english_with_alternatives(self):
        problem = ModelUnsupported(model="gpt-5", provider="openai", available=("gpt-4", "gpt-3.5-turbo"))
        assert render(problem, ENGLISH) == "Model 'gpt-5' is not supported by provider 'openai'"

    def test_render_chinese(self):
        assert render(ConfigurationNotFound(name="x"), CHINESE) == "未找到配置 'x'"
        assert "运行时" in render(RuntimeApiKeyRequired(provider="azure"), CHINESE)

    def test_str_follows_environment(self, monkeypatch):
        problem = ConfigurationNotFound(name="x")
        assert str(problem) == "Configuration 'x' not found"

        monkeypatch.setenv("QCR_LANG", "zh")
        assert str(problem) == "未找到配置 'x'"

    def test_get_text_in_chinese(self, monkeypatch):
        monkeypatch.setenv("QCR_LANG", "zh")
        assert get_text("CONFIG_FILE_NOT_FOUND") == "未找到配置文件"

    def test_variants_are_immutable(self):
        problem = ProviderMissing(provider="p")
        with pytest.raises(Exception):
            problem.provider = "q"


class TestErrorResults:
    def test_config_file_not_found(self):
        result = create_error_result(config_file_not_found(["/a/config.yaml", "/b/config.json"]))

        assert not result.success
        assert result.exit_code == ExitCode.CONFIG_NOT_FOUND
        assert result.message == "Configuration file not found"
        assert "Searched in the following locations:\n  - /a/config.yaml\n  - /b/config.json" in result.details
        assert "Available options:\n  - config.yaml (recommended)" in result.details
        assert "Suggestions:\n  • " in result.details

    def test_config_not_found_without_alternatives(self):
        error = config_not_found("x", [])
        assert error.available_options == ["No configurations available"]
        assert error.exit_code == ExitCode.CONFIG_INVALID

    def test_validation_error_details(self):
        error = config_validation_error(["bad thing"], ["odd thing"])
        assert error.details == "Configuration validation errors:\n  ✗ bad thing\n\nWarnings:\n  ⚠ odd thing"
        assert error.exit_code == ExitCode.CONFIG_VALIDATION_FAILED

    def test_invalid_arguments_includes_usage(self):
        error = invalid_arguments("set-default", "Configuration name is required", "qcr set-default <config_name>")
        assert error.message == "Invalid arguments for command 'set-default'"
        assert error.details.endswith("Usage: qcr set-default <config_name>")
        assert error.exit_code == ExitCode.INVALID_USAGE

    def test_process_launch_error_codes(self):
        assert process_launch_error("Qwen Code", "spawn qwen ENOENT", not_found=True).exit_code == 127
        assert process_launch_error("Qwen Code", "permission denied").exit_code == 1

    @pytest.mark.parametrize(
        "problem, exit_code, fragment",
        [
            (ConfigurationNotFound(name="x", available=("a", "b")), ExitCode.CONFIG_INVALID, "Configuration not found: 'x'"),
            (ProviderMissing(provider="p", available=("openai",)), ExitCode.CONFIG_INVALID, "Provider 'p' not found"),
            (ModelUnsupported(model="m", provider="p", available=("x",)), ExitCode.CONFIG_INVALID, "Model 'm' not found"),
            (CredentialMissing(provider="google", env_var="GOOGLE_API_KEY"), ExitCode.ENVIRONMENT_ERROR, "GOOGLE_API_KEY"),
            (NoDefaultConfiguration(available=("a",)), ExitCode.CONFIG_INVALID, "No default configuration set"),
        ],
    )
    def test_resolution_error_mapping(self, problem, exit_code, fragment):
        error = resolution_error(problem)
        assert error.exit_code == exit_code
        assert fragment in error.message

    def test_resolution_error_lists_alternatives(self):
        error = resolution_error(ConfigurationNotFound(name="x", available=("a", "b")))
        assert error.available_options == ["a", "b"]


class TestCommandBoundary:
    def test_passes_results_through(self):
        @command_boundary("demo")
        def ok():
            return CommandResult(success=True, message="fine")

        assert ok().message == "fine"

    def test_command_error_returns_its_result(self):
        @command_boundary("demo")
        def fails():
            raise CommandError(CommandResult(success=False, message="nope", exit_code=3))

        result = fails()
        assert result.message == "nope"
        assert result.exit_code == 3

    def test_unexpected_exception(self):
        @command_boundary("demo operation")
        def explodes():
            raise RuntimeError("boom")

        result = explodes()
        assert not result.success
        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert result.message == "Unexpected error occurred during demo operation"
        assert result.details.startswith("boom")
