import logging
from pathlib import Path
from typing import MutableMapping, Optional, Union

from ..config import ConfigFile, ConfigFileNotFoundError, ConfigLoadError, ConfigManager
from ..env import CredentialSource, EnvManager
from ..errors import (
    command_boundary,
    config_load_error,
    config_validation_error,
    create_error_result,
    create_success_result,
    environment_validation_error,
    invalid_arguments,
    resolution_error,
)
from ..resolver import resolve_by_provider_model
from ..types import CommandResult, ResolutionSource
from .common import describe_environment

logger = logging.getLogger(__name__)

USAGE = "qcr router <provider> <model>"


def _describe_source(resolution) -> str:
    if resolution.source == ResolutionSource.CONFIGURATION:
        return f"configuration '{resolution.entry.name}'"
    if resolution.source == ResolutionSource.CONFIGURED_PROVIDER:
        return "configuration file provider"
    return f"built-in provider '{resolution.provider.builtin.display_name}'"


@command_boundary("router command execution")
def router_command(provider: Optional[str], model: Optional[str], verbose: bool = False,
                   export: bool = False, current_dir: Optional[Union[str, Path]] = None,
                   environ: Optional[MutableMapping[str, str]] = None,
                   shell: Optional[str] = None) -> CommandResult:
    """按 provider/model 快速激活，不需要预先定义配置

    没有配置文件时只使用内置提供商。
    """
    if not provider or not model:
        return create_error_result(invalid_arguments("router", "Both provider and model are required", USAGE))

    env_manager = EnvManager(environ)
    file_path = None
    try:
        loaded = ConfigManager(current_dir, environ=env_manager.environ).load()
    except ConfigFileNotFoundError:
        logger.debug("No configuration file found, using built-in providers only")
        config = ConfigFile.empty()
    except ConfigLoadError as e:
        return create_error_result(config_load_error(e.file_path, e.reason))
    else:
        if not loaded.validation.is_valid:
            return create_error_result(
                config_validation_error(loaded.validation.errors, loaded.validation.warnings)
            )
        config = loaded.config
        file_path = loaded.file_path

    resolution = resolve_by_provider_model(
        provider, model, config, credentials=CredentialSource(env_manager.environ)
    )
    if not resolution.success:
        return create_error_result(resolution_error(resolution.error))

    triple = resolution.env
    env_validation = env_manager.validate_environment(triple.as_environ())
    if not env_validation.is_valid:
        return create_error_result(
            environment_validation_error(env_validation.errors, env_validation.warnings)
        )

    env_manager.apply_triple(triple)

    if export:
        return create_success_result("\n".join(env_manager.export_statements(triple, shell=shell)))

    resolved_provider = resolution.provider.name
    details = [f"Source: {_describe_source(resolution)}"]
    if verbose:
        details.append(f"Provider: {resolved_provider}")
        details.append(f"Model: {triple.model}")
        details.append(f"Base URL: {triple.base_url}")
        details.extend(describe_environment(triple))
        if file_path is not None:
            details.append(f"Configuration file: {file_path}")
        if env_validation.warnings:
            details.append(f"Warnings: {', '.join(env_validation.warnings)}")

    return create_success_result(
        f"Successfully activated provider '{resolved_provider}' with model '{triple.model}'",
        "\n".join(details),
    )
