"""Tests for structural config validation and per-configuration checks."""

import pytest

from qcr.config import ConfigFile
from qcr.errors import (
    ApiKeyMissing,
    BaseUrlMissing,
    BuiltInModelUnsupported,
    ConfigurationNotFound,
    ModelNotInProvider,
    NoModelsConfigured,
    ProviderHasNoModels,
    ProviderNotInFile,
    RuntimeApiKeyRequired,
)
from qcr.types import ConfigValidationResult
from qcr.validation import is_aggregate_valid, validate_config_file, validate_one


def _config(entries, providers, default=None):
    data = {"configs": [{"config": entries}], "providers": providers}
    if default is not None:
        data["default_config"] = default
    return ConfigFile.model_validate(data)


class TestValidateConfigFile:
    def test_sample_is_valid(self, sample_config):
        result = validate_config_file(ConfigFile.model_validate(sample_config))
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_unknown_default(self, sample_config):
        sample_config["default_config"] = [{"name": "ghost"}]
        result = validate_config_file(ConfigFile.model_validate(sample_config))
        assert 'Default configuration "ghost" does not exist in configs array' in result.errors

    def test_multiple_defaults_warn(self, sample_config):
        sample_config["default_config"].append({"name": "local-qwen"})
        result = validate_config_file(ConfigFile.model_validate(sample_config))
        assert result.is_valid
        assert "Multiple default configurations found, only the first will be used" in result.warnings

    def test_empty_default_array_warns(self, sample_config):
        sample_config["default_config"] = []
        result = validate_config_file(ConfigFile.model_validate(sample_config))
        assert "default_config array is empty" in result.warnings

    def test_empty_fields_have_paths(self, sample_config):
        sample_config["configs"][0]["config"][1]["model"] = ""
        sample_config["providers"][0]["env"]["api_key"] = ""
        result = validate_config_file(ConfigFile.model_validate(sample_config))

        assert "configs[0].config[1]: model cannot be empty" in result.errors
        assert "providers[0].env: api_key cannot be empty" in result.errors

    def test_invalid_base_url(self, sample_config):
        sample_config["providers"][1]["env"]["base_url"] = "not-a-url"
        result = validate_config_file(ConfigFile.model_validate(sample_config))
        assert "providers[1].env: base_url is not a valid URL format" in result.errors

    def test_models_must_be_defined(self, sample_config):
        del sample_config["providers"][2]["env"]["models"]
        result = validate_config_file(ConfigFile.model_validate(sample_config))
        assert "providers[2].env: models must be an array" in result.errors

    def test_duplicate_models_warn(self, sample_config):
        sample_config["providers"][0]["env"]["models"].append({"model": "gpt-4"})
        result = validate_config_file(ConfigFile.model_validate(sample_config))
        assert "providers[0].env: Duplicate model names found: gpt-4" in result.warnings

    def test_cross_references(self, sample_config):
        sample_config["configs"][0]["config"][0]["model"] = "gpt-5"
        sample_config["configs"][0]["config"][2]["provider"] = "ghost"
        result = validate_config_file(ConfigFile.model_validate(sample_config))

        assert 'configs[0].config[0]: Model "gpt-5" not found in provider "openai" models list' in result.errors
        assert 'configs[0].config[2]: Provider "ghost" not found in providers array' in result.errors

    def test_duplicate_names(self, sample_config):
        sample_config["configs"][0]["config"].append(
            {"name": "openai-gpt4", "provider": "openai", "model": "gpt-3.5-turbo"}
        )
        sample_config["providers"].append(sample_config["providers"][0])
        result = validate_config_file(ConfigFile.model_validate(sample_config))

        assert "Duplicate configuration names found: openai-gpt4" in result.errors
        assert "Duplicate provider names found: openai" in result.errors


class TestValidateOne:
    def test_local_provider_fully_valid(self, sample_config):
        result = validate_one("local-qwen", ConfigFile.model_validate(sample_config))

        assert result.is_valid
        assert result.is_fully_valid
        assert result.provider.name == "local"
        assert result.provider.model_count == 2
        assert result.model.is_supported

    def test_unknown_configuration(self, sample_config):
        result = validate_one("ghost", ConfigFile.model_validate(sample_config))
        assert not result.is_valid
        assert isinstance(result.errors[0], ConfigurationNotFound)

    def test_missing_provider_short_circuits(self):
        config = _config(
            [{"name": "x", "provider": "nowhere", "model": "m"}],
            [{"provider": "other", "env": {"base_url": "", "models": []}}],
        )
        result = validate_one("x", config)

        assert len(result.errors) == 1
        assert result.warnings == []
        assert isinstance(result.errors[0], ProviderNotInFile)
        assert str(result.errors[0]) == "Provider 'nowhere' not found in providers section"

    def test_builtin_provider_not_in_file(self):
        config = _config([{"name": "az", "provider": "azure", "model": "gpt-35-turbo"}], [])
        result = validate_one("az", config)

        assert result.is_valid
        assert result.errors == []
        assert len(result.warnings) == 1
        assert isinstance(result.warnings[0], RuntimeApiKeyRequired)
        assert result.provider.base_url == "https://[resource].openai.azure.com/openai"
        assert result.provider.model_count == 5
        assert not result.is_fully_valid

    def test_builtin_provider_unknown_model(self):
        config = _config([{"name": "az", "provider": "azure", "model": "gpt-99"}], [])
        result = validate_one("az", config)

        assert not result.is_valid
        assert isinstance(result.errors[0], BuiltInModelUnsupported)
        assert "Supported models: gpt-4, gpt-4-turbo" in str(result.errors[0])
        assert isinstance(result.warnings[0], RuntimeApiKeyRequired)

    def test_empty_model_list_reports_error_and_warning(self):
        config = _config(
            [{"name": "x", "provider": "custom", "model": "anything"}],
            [{"provider": "custom", "env": {"api_key": "k", "base_url": "https://c.example.com", "models": []}}],
        )
        result = validate_one("x", config)

        assert any(isinstance(error, ModelNotInProvider) for error in result.errors)
        assert any(isinstance(warning, NoModelsConfigured) for warning in result.warnings)

    def test_undefined_models_use_builtin_list(self):
        config = _config(
            [{"name": "x", "provider": "openai", "model": "gpt-4"}],
            [{"provider": "openai", "env": {"api_key": "sk-1234567890"}}],
        )
        result = validate_one("x", config)

        assert result.is_fully_valid
        assert result.provider.base_url == "https://api.openai.com/v1"
        assert result.provider.model_count == 9

    def test_undefined_models_non_builtin(self):
        config = _config(
            [{"name": "x", "provider": "custom", "model": "m"}],
            [{"provider": "custom", "env": {"api_key": "k", "base_url": "https://c.example.com"}}],
        )
        result = validate_one("x", config)

        assert isinstance(result.errors[0], ProviderHasNoModels)
        assert not result.model.is_supported

    def test_missing_key_and_url_warnings(self):
        config = _config(
            [{"name": "x", "provider": "custom", "model": "m"}],
            [{"provider": "custom", "env": {"models": [{"model": "m"}]}}],
        )
        result = validate_one("x", config)

        assert result.is_valid
        assert [type(warning) for warning in result.warnings] == [ApiKeyMissing, BaseUrlMissing]

    def test_missing_key_for_builtin_is_runtime_warning(self):
        config = _config(
            [{"name": "x", "provider": "openai", "model": "gpt-4"}],
            [{"provider": "openai", "env": {"models": [{"model": "gpt-4"}]}}],
        )
        result = validate_one("x", config)

        assert [type(warning) for warning in result.warnings] == [RuntimeApiKeyRequired]

    def test_being_default_is_not_a_warning(self, sample_config):
        result = validate_one("openai-gpt4", ConfigFile.model_validate(sample_config))
        assert result.warnings == []


@pytest.mark.parametrize(
    "results, expected",
    [
        ([ConfigValidationResult("a", True), ConfigValidationResult("b", True)], True),
        ([ConfigValidationResult("a", True), ConfigValidationResult("b", True, warnings=[BaseUrlMissing("p")])], False),
        ([ConfigValidationResult("a", False, errors=[ProviderNotInFile("p")])], False),
        ([], True),
    ],
)
def test_aggregate_validity(results, expected):
    assert is_aggregate_valid(results) is expected
