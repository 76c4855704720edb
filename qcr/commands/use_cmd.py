from pathlib import Path
from typing import MutableMapping, Optional, Union

from ..env import EnvManager
from ..errors import (
    command_boundary,
    create_error_result,
    create_success_result,
    environment_validation_error,
    resolution_error,
)
from ..resolver import resolve_by_name, resolve_default
from ..types import CommandResult
from .common import describe_environment, load_config


@command_boundary("use command execution")
def use_command(config_name: Optional[str] = None, verbose: bool = False, export: bool = False,
                current_dir: Optional[Union[str, Path]] = None,
                environ: Optional[MutableMapping[str, str]] = None,
                shell: Optional[str] = None) -> CommandResult:
    """激活配置：未指定名称时使用默认配置"""
    env_manager = EnvManager(environ)
    loaded = load_config(current_dir, environ=env_manager.environ)
    config = loaded.config

    if config_name:
        resolution = resolve_by_name(config_name, config)
        config_source = "specified configuration"
    else:
        resolution = resolve_default(config)
        config_name = config.default_name()
        config_source = "default configuration"

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

    details = [f"Provider: {resolution.entry.provider}, Model: {resolution.entry.model}"]
    if verbose:
        details.append(f"Configuration file: {loaded.file_path}")
        details.extend(describe_environment(triple))
        if env_validation.warnings:
            details.append("Warnings:")
            details.extend(f"  ⚠ {warning}" for warning in env_validation.warnings)

    return create_success_result(
        f"Successfully activated {config_source} '{config_name}'",
        "\n".join(details),
    )
