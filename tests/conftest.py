import copy
import json
import os

import pytest
import yaml


SAMPLE_CONFIG = {
    "default_config": [{"name": "openai-gpt4"}],
    "configs": [
        {
            "config": [
                {"name": "openai-gpt4", "provider": "openai", "model": "gpt-4"},
                {"name": "azure-gpt35", "provider": "azure", "model": "gpt-35-turbo"},
                {"name": "local-qwen", "provider": "local", "model": "qwen-max"},
            ]
        }
    ],
    "providers": [
        {
            "provider": "openai",
            "env": {
                "api_key": "sk-openai-1234567890",
                "base_url": "https://api.openai.com/v1",
                "models": [{"model": "gpt-4"}, {"model": "gpt-3.5-turbo"}],
            },
        },
        {
            "provider": "azure",
            "env": {
                "api_key": "azure-key-1234567890",
                "base_url": "https://myresource.openai.azure.com/openai",
                "models": [{"model": "gpt-35-turbo"}],
            },
        },
        {
            "provider": "local",
            "env": {
                "api_key": "sk-local-1234567890",
                "base_url": "https://dashscope.aliyuncs.com/compatible-mode/v1",
                "models": [{"model": "qwen-max"}, {"model": "qwen-plus"}],
            },
        },
    ],
}

MANAGED_VARS = (
    "QCR_CONFIG",
    "QCR_EXECUTABLE",
    "QCR_DEBUG",
    "QCR_LOG_LEVEL",
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "OPENAI_MODEL",
    "AZURE_API_KEY",
    "ANTHROPIC_API_KEY",
    "GOOGLE_API_KEY",
)


@pytest.fixture(autouse=True)
def restore_environ():
    """Keep global environment stable across CLI invocations."""
    original = os.environ.copy()
    try:
        yield
    finally:
        os.environ.clear()
        os.environ.update(original)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run every test from an empty working directory with a temp QCR home."""
    import platform

    home_dir = tmp_path / "home"
    work_dir = tmp_path / "work"
    home_dir.mkdir(parents=True, exist_ok=True)
    work_dir.mkdir(parents=True, exist_ok=True)

    for var in MANAGED_VARS:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("QCR_HOME", str(home_dir / ".qcr"))
    monkeypatch.setenv("QCR_LANG", "en")
    monkeypatch.chdir(work_dir)

    # For Windows, also patch Path.home() to return our temp home
    if platform.system() == "Windows":
        from pathlib import Path
        monkeypatch.setattr(Path, "home", lambda: home_dir)

    return work_dir


@pytest.fixture()
def sample_config():
    return copy.deepcopy(SAMPLE_CONFIG)


@pytest.fixture()
def write_config(isolated_env):
    """Write a configuration file into the working directory (or another directory)."""

    def _write(data, name="config.yaml", directory=None):
        target_dir = directory or isolated_env
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / name
        if isinstance(data, str):
            path.write_text(data, encoding="utf-8")
        elif name.endswith(".json"):
            path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        else:
            path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write
