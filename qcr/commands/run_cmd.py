import logging
from pathlib import Path
from typing import MutableMapping, Optional, Sequence, Union

from ..env import EnvManager
from ..errors import (
    command_boundary,
    create_error_result,
    create_success_result,
    process_launch_error,
)
from ..launcher import ProcessLauncher
from ..startup import prepare_launch
from ..types import CommandResult
from .common import describe_environment

logger = logging.getLogger(__name__)

TOOL_LABEL = "Qwen Code"


@command_boundary("run command execution")
def run_command(args: Sequence[str] = (), config_name: Optional[str] = None, verbose: bool = False,
                current_dir: Optional[Union[str, Path]] = None,
                environ: Optional[MutableMapping[str, str]] = None,
                launcher: Optional[ProcessLauncher] = None) -> CommandResult:
    """以解析出的环境变量启动 Qwen Code，并把子进程的退出码作为结果"""
    env_manager = EnvManager(environ)
    state = prepare_launch(config_name, current_dir=current_dir, environ=env_manager.environ)
    if not state.ready:
        return create_error_result(state.error)

    launcher = launcher or ProcessLauncher(environ=env_manager.environ)
    child_env = env_manager.build_child_env(state.triple)

    try:
        outcome = launcher.launch(list(args), child_env)
    except FileNotFoundError as e:
        return create_error_result(process_launch_error(TOOL_LABEL, str(e), not_found=True))
    except OSError as e:
        return create_error_result(process_launch_error(TOOL_LABEL, str(e)))

    if outcome.terminated_by_signal:
        message = f"{TOOL_LABEL} terminated by signal {outcome.signal_name}"
    elif outcome.exit_code == 0:
        message = f"{TOOL_LABEL} completed successfully"
    else:
        message = f"{TOOL_LABEL} exited with code {outcome.exit_code}"

    details = None
    if verbose:
        source = state.source.value if state.source else "unknown"
        lines = [f"Source: {source}"]
        if state.config_name:
            lines.append(f"Configuration: {state.config_name}")
        if state.file_path:
            lines.append(f"Configuration file: {state.file_path}")
        lines.extend(describe_environment(state.triple))
        lines.extend(f"⚠ {warning}" for warning in state.warnings)
        details = "\n".join(lines)

    return create_success_result(message, details, exit_code=outcome.exit_code)
