import asyncio
from pathlib import Path
from typing import List, Mapping, Optional, Union

import httpx

from ..errors import ExitCode, command_boundary
from ..types import CommandResult, ConfigValidationResult
from ..utils import format_problem_list
from ..validation import is_aggregate_valid, validate_all, validate_one_with_connectivity
from .common import load_config


def _status_marker(result: ConfigValidationResult) -> str:
    if result.is_fully_valid:
        return "✓"
    if result.errors:
        return "✗"
    return "⚠"


def _indented(details: str) -> str:
    details = details.strip()
    return f"  {details}" if details else ""


def _single_result(result: ConfigValidationResult, verbose: bool, file_path: Path) -> CommandResult:
    success = result.is_fully_valid
    state = "valid" if success else "invalid"

    sections = []
    if result.errors:
        sections.append(format_problem_list("Errors", [str(problem) for problem in result.errors]))
    if result.warnings:
        sections.append(format_problem_list("Warnings", [str(problem) for problem in result.warnings]))

    if verbose:
        if result.provider:
            sections.append("\n".join([
                "Provider details:",
                f"  Name: {result.provider.name}",
                f"  Base URL: {result.provider.base_url or 'undefined'}",
                f"  Available models: {result.provider.model_count}",
            ]))
        if result.model:
            sections.append("\n".join([
                "Model details:",
                f"  Name: {result.model.name}",
                f"  Supported: {'Yes' if result.model.is_supported else 'No'}",
            ]))
        sections.append(f"Configuration file: {file_path}")

    return CommandResult(
        success=success,
        message=f"Configuration '{result.config_name}' is {state}",
        details=_indented("\n\n".join(sections)),
        exit_code=ExitCode.SUCCESS if success else ExitCode.GENERAL_ERROR,
    )


def _aggregate_result(results: List[ConfigValidationResult], default_name: Optional[str],
                      verbose: bool, file_path: Path) -> CommandResult:
    success = is_aggregate_valid(results)
    valid_count = sum(1 for result in results if result.is_fully_valid)
    if success:
        message = f"All {valid_count} configurations are valid"
    else:
        message = f"{valid_count} of {len(results)} configurations are valid"

    lines = []
    for result in results:
        line = f"{_status_marker(result)} {result.config_name}"
        if result.config_name == default_name:
            line += " (default)"
        if verbose:
            first_problem = (result.errors or result.warnings or [None])[0]
            if first_problem is not None:
                line += f": {first_problem}"
        lines.append(line)

    details = "\n  ".join(lines)
    if verbose:
        details += f"\n\nConfiguration file: {file_path}"

    return CommandResult(
        success=success,
        message=message,
        details=_indented(details),
        exit_code=ExitCode.SUCCESS if success else ExitCode.GENERAL_ERROR,
    )


@command_boundary("chk command execution")
def chk_command(config_name: Optional[str] = None, test_api: bool = False, verbose: bool = False,
                current_dir: Optional[Union[str, Path]] = None,
                environ: Optional[Mapping[str, str]] = None,
                client: Optional[httpx.AsyncClient] = None) -> CommandResult:
    """校验单个配置或全部配置

    单个配置的检查不要求整个配置文件通过结构校验；有警告也算失败。
    """
    loaded = load_config(current_dir, environ=environ, require_valid=False)
    config = loaded.config
    available = config.configuration_names()

    if config_name:
        if config_name not in available:
            return CommandResult(
                success=False,
                message=f"Configuration '{config_name}' does not exist",
                details=f"Available configurations: {', '.join(available)}",
                exit_code=ExitCode.GENERAL_ERROR,
            )
        result = asyncio.run(validate_one_with_connectivity(config_name, config, test_api, client=client))
        return _single_result(result, verbose, loaded.file_path)

    if not available:
        return CommandResult(
            success=False,
            message="No configurations found",
            details="Add configurations to your configuration file to validate them.",
            exit_code=ExitCode.GENERAL_ERROR,
        )

    results = asyncio.run(validate_all(config, test_api, client=client))
    return _aggregate_result(results, config.default_name(), verbose, loaded.file_path)
