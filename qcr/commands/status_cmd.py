from pathlib import Path
from typing import Mapping, Optional, Union

from ..env import API_KEY_VAR, BASE_URL_VAR, MODEL_VAR, EnvManager
from ..errors import command_boundary, create_success_result
from ..startup import prepare_launch
from ..types import CommandResult
from ..utils import get_system_info, mask_api_key


@command_boundary("status command execution")
def status_command(verbose: bool = False, current_dir: Optional[Union[str, Path]] = None,
                   environ: Optional[Mapping[str, str]] = None) -> CommandResult:
    """显示当前激活的环境变量，以及 run 命令能否直接启动"""
    env_manager = EnvManager(dict(environ) if environ is not None else None)
    env_validation = env_manager.validate_environment()

    if env_validation.is_valid:
        current = env_manager.get_current_env()
        message = "Configuration is currently active"
        lines = [
            f"Provider endpoint: {current[BASE_URL_VAR]}",
            f"Model: {current[MODEL_VAR]}",
            f"API Key: {mask_api_key(current[API_KEY_VAR])}",
        ]
        if env_validation.warnings:
            lines.append(f"Warnings: {', '.join(env_validation.warnings)}")
    else:
        message = "No configuration is currently active"
        lines = ['Use "qcr use [config_name]" to activate a configuration.']

    if verbose:
        state = prepare_launch(current_dir=current_dir, environ=env_manager.environ)
        lines.append("")
        if state.ready:
            source = state.source.value if state.source else "unknown"
            lines.append(f"Ready to launch: yes (source: {source})")
            if state.config_name:
                lines.append(f"  Configuration: {state.config_name}")
        else:
            lines.append(f"Ready to launch: no ({state.error.message})")
        if state.file_path:
            lines.append(f"Configuration file: {state.file_path}")

        lines.append("")
        lines.append("System information:")
        lines.extend(f"  {key}: {value}" for key, value in get_system_info().items())

    return create_success_result(message, "\n".join(lines))
