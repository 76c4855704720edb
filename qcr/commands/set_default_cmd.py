from pathlib import Path
from typing import Mapping, Optional, Union

from ..config import ConfigManager
from ..errors import (
    command_boundary,
    config_not_found,
    create_error_result,
    create_success_result,
    file_operation_error,
    invalid_arguments,
)
from ..resolver import set_default
from ..types import CommandResult
from .common import load_config

USAGE = "qcr set-default <config_name>"


@command_boundary("set-default command execution")
def set_default_command(config_name: Optional[str], verbose: bool = False,
                        current_dir: Optional[Union[str, Path]] = None,
                        environ: Optional[Mapping[str, str]] = None) -> CommandResult:
    """把指定配置写入配置文件的 default_config，保持原文件格式"""
    if not config_name:
        return create_error_result(invalid_arguments("set-default", "Configuration name is required", USAGE))

    loaded = load_config(current_dir, environ=environ)
    config = loaded.config

    available = config.configuration_names()
    if config_name not in available:
        return create_error_result(config_not_found(config_name, available))

    previous = set_default(config, config_name)
    try:
        ConfigManager(current_dir, environ=environ).save(config, loaded.file_path, loaded.file_format)
    except OSError as e:
        return create_error_result(file_operation_error("save", str(loaded.file_path), str(e)))

    if previous and previous != config_name:
        details = f"Previous default: {previous}"
    elif not previous:
        details = "No previous default configuration was set"
    else:
        details = f"'{config_name}' was already the default configuration"

    if verbose:
        details += f"\nConfiguration file: {loaded.file_path}"
        details += f"\nAvailable configurations: {', '.join(available)}"

    return create_success_result(f"Successfully set '{config_name}' as the default configuration", details)
