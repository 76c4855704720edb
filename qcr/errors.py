"""错误变体、退出码和统一的错误结果格式"""

import functools
import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Callable, List, Optional, Tuple

from .i18n import format_suggestions, get_suggestion, get_text, render
from .types import CommandResult

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    SUCCESS = 0
    GENERAL_ERROR = 1
    INVALID_USAGE = 2
    CONFIG_NOT_FOUND = 3
    CONFIG_INVALID = 4
    CONFIG_VALIDATION_FAILED = 5
    ENVIRONMENT_ERROR = 6
    COMMAND_NOT_FOUND = 127
    INTERRUPTED = 130


class ErrorCategory(Enum):
    CONFIG_FILE = "Configuration File"
    VALIDATION = "Validation"
    ENVIRONMENT = "Environment"
    COMMAND = "Command"
    SYSTEM = "System"


# ---- 解析与校验的错误变体 ----

@dataclass(frozen=True)
class Problem:
    """错误变体基类，文本渲染交给 i18n.render"""

    def __str__(self) -> str:
        return render(self)


@dataclass(frozen=True)
class ConfigurationNotFound(Problem):
    name: str
    available: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProviderMissing(Problem):
    provider: str
    configuration: str = ""
    available: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProviderNotInFile(Problem):
    provider: str


@dataclass(frozen=True)
class ModelUnsupported(Problem):
    model: str
    provider: str
    available: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BuiltInModelUnsupported(Problem):
    model: str
    provider: str
    available: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ModelNotInProvider(Problem):
    model: str
    provider: str


@dataclass(frozen=True)
class ProviderHasNoModels(Problem):
    provider: str


@dataclass(frozen=True)
class CredentialMissing(Problem):
    provider: str
    env_var: str


@dataclass(frozen=True)
class NoDefaultConfiguration(Problem):
    available: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ApiKeyMissing(Problem):
    provider: str


@dataclass(frozen=True)
class RuntimeApiKeyRequired(Problem):
    provider: str


@dataclass(frozen=True)
class BaseUrlMissing(Problem):
    provider: str


@dataclass(frozen=True)
class NoModelsConfigured(Problem):
    provider: str


@dataclass(frozen=True)
class ConnectivityFailed(Problem):
    reason: str
    base_url: str = ""


@dataclass(frozen=True)
class ConnectivityTimeout(Problem):
    base_url: str


@dataclass(frozen=True)
class ModelUnavailable(Problem):
    model: str


# ---- 面向用户的错误结果 ----

@dataclass
class ErrorMessage:
    message: str
    exit_code: int
    details: Optional[str] = None
    suggestions: List[str] = field(default_factory=list)
    available_options: List[str] = field(default_factory=list)
    category: Optional[ErrorCategory] = None


class CommandError(Exception):
    """命令内部抛出，由 command_boundary 转换为结果"""

    def __init__(self, result: CommandResult):
        super().__init__(result.message)
        self.result = result


def create_error_result(error: ErrorMessage) -> CommandResult:
    sections = []
    if error.details:
        sections.append(error.details)
    if error.available_options:
        options = "\n".join(f"  - {option}" for option in error.available_options)
        sections.append(f"{get_text('AVAILABLE_OPTIONS')}:\n{options}")
    if error.suggestions:
        suggestions = "\n".join(f"  • {suggestion}" for suggestion in error.suggestions)
        sections.append(f"{get_text('SUGGESTIONS')}:\n{suggestions}")

    return CommandResult(
        success=False,
        message=error.message,
        details="\n\n".join(sections) or None,
        exit_code=int(error.exit_code),
    )


def create_success_result(message: str, details: Optional[str] = None,
                          exit_code: int = ExitCode.SUCCESS) -> CommandResult:
    return CommandResult(success=True, message=message, details=details, exit_code=int(exit_code))


def command_boundary(operation: str) -> Callable:
    """命令边界：CommandError 返回其结果，其余异常转换为 unexpected error"""

    def decorator(func: Callable[..., CommandResult]) -> Callable[..., CommandResult]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> CommandResult:
            try:
                return func(*args, **kwargs)
            except CommandError as e:
                return e.result
            except Exception as e:
                logger.debug("Unexpected error during %s", operation, exc_info=True)
                return create_error_result(unexpected_error(operation, e))

        return wrapper

    return decorator


def _bullets(items: List[str], marker: str = "-") -> str:
    return "\n".join(f"  {marker} {item}" for item in items)


def config_file_not_found(search_paths: List[str]) -> ErrorMessage:
    return ErrorMessage(
        message=get_text("CONFIG_FILE_NOT_FOUND"),
        details=f"Searched in the following locations:\n{_bullets(search_paths)}",
        suggestions=[
            get_suggestion("CREATE_CONFIG_FILE"),
            'Use "config.yaml" or "config.json" as the filename',
            get_suggestion("USE_EXAMPLE_CONFIG"),
        ],
        available_options=[
            "config.yaml (recommended)",
            "config.json",
            "~/.qcr/config.yaml",
            "~/.qcr/config.json",
        ],
        category=ErrorCategory.CONFIG_FILE,
        exit_code=ExitCode.CONFIG_NOT_FOUND,
    )


def config_load_error(file_path: str, reason: str) -> ErrorMessage:
    return ErrorMessage(
        message=f"Failed to load configuration file: {file_path}",
        details=reason,
        suggestions=format_suggestions(["CHECK_FILE_PERMISSIONS", "USE_EXAMPLE_CONFIG"]),
        category=ErrorCategory.CONFIG_FILE,
        exit_code=ExitCode.CONFIG_VALIDATION_FAILED,
    )


def config_validation_error(errors: List[str], warnings: Optional[List[str]] = None) -> ErrorMessage:
    details = f"Configuration validation errors:\n{_bullets(errors, '✗')}"
    if warnings:
        details += f"\n\nWarnings:\n{_bullets(warnings, '⚠')}"

    return ErrorMessage(
        message=get_text("CONFIG_VALIDATION_FAILED"),
        details=details,
        suggestions=[
            "Check the configuration file syntax and structure",
            "Ensure all required fields are present and properly formatted",
            "Verify that provider and model references are valid",
            get_suggestion("USE_EXAMPLE_CONFIG"),
        ],
        category=ErrorCategory.VALIDATION,
        exit_code=ExitCode.CONFIG_VALIDATION_FAILED,
    )


def config_not_found(config_name: str, available_configs: List[str]) -> ErrorMessage:
    if available_configs:
        suggestions = [
            f"Use one of the available configurations: {', '.join(available_configs)}",
            "Check the spelling of the configuration name",
            get_suggestion("LIST_AVAILABLE_CONFIGS"),
        ]
    else:
        suggestions = [
            "Add configurations to your configuration file",
            get_suggestion("USE_EXAMPLE_CONFIG"),
        ]

    return ErrorMessage(
        message=f"{get_text('CONFIG_NOT_FOUND')}: '{config_name}'",
        available_options=list(available_configs) or ["No configurations available"],
        suggestions=suggestions,
        category=ErrorCategory.CONFIG_FILE,
        exit_code=ExitCode.CONFIG_INVALID,
    )


def provider_not_found(provider_name: str, available_providers: List[str]) -> ErrorMessage:
    if available_providers:
        suggestions = [
            f"Use one of the available providers: {', '.join(available_providers)}",
            "Check the spelling of the provider name (case-insensitive)",
            'Use "qcr list provider" to see all available providers',
        ]
    else:
        suggestions = [
            "Add providers to your configuration file",
            "Check the example configuration files for proper format",
        ]

    return ErrorMessage(
        message=f"Provider '{provider_name}' not found",
        available_options=list(available_providers) or ["No providers available"],
        suggestions=suggestions,
        category=ErrorCategory.CONFIG_FILE,
        exit_code=ExitCode.CONFIG_INVALID,
    )


def model_not_found(model_name: str, provider_name: str, available_models: List[str]) -> ErrorMessage:
    if available_models:
        suggestions = [
            f"Use one of the available models: {', '.join(available_models)}",
            "Check the spelling of the model name",
            f'Use "qcr list provider {provider_name}" to see available models',
        ]
    else:
        suggestions = [
            f"Add models to the '{provider_name}' provider configuration",
            "Check the provider documentation for supported models",
        ]

    return ErrorMessage(
        message=f"Model '{model_name}' not found for provider '{provider_name}'",
        available_options=list(available_models) or ["No models available for this provider"],
        suggestions=suggestions,
        category=ErrorCategory.CONFIG_FILE,
        exit_code=ExitCode.CONFIG_INVALID,
    )


def credential_missing(problem: CredentialMissing) -> ErrorMessage:
    return ErrorMessage(
        message=str(problem),
        suggestions=[
            f"Export {problem.env_var} or OPENAI_API_KEY before running this command",
            "Configure this provider in your configuration file instead",
        ],
        category=ErrorCategory.ENVIRONMENT,
        exit_code=ExitCode.ENVIRONMENT_ERROR,
    )


def environment_not_set(missing_vars: List[str]) -> ErrorMessage:
    return ErrorMessage(
        message=get_text("ENV_VARS_NOT_SET"),
        details=f"Missing environment variables:\n{_bullets(missing_vars)}",
        suggestions=[
            get_suggestion("ACTIVATE_CONFIG_FIRST"),
            'Use "qcr router [provider] [model]" for quick configuration',
            "Check that your configuration file is valid and accessible",
        ],
        category=ErrorCategory.ENVIRONMENT,
        exit_code=ExitCode.ENVIRONMENT_ERROR,
    )


def environment_validation_error(errors: List[str], warnings: Optional[List[str]] = None) -> ErrorMessage:
    details = f"Environment validation errors:\n{_bullets(errors, '✗')}"
    if warnings:
        details += f"\n\nWarnings:\n{_bullets(warnings, '⚠')}"

    return ErrorMessage(
        message=get_text("ENV_VALIDATION_FAILED"),
        details=details,
        suggestions=[
            "Check that all environment variables are properly set",
            get_suggestion("CHECK_API_KEY"),
            "Ensure base URL is a valid HTTPS endpoint",
            "Confirm model name is correct",
        ],
        category=ErrorCategory.ENVIRONMENT,
        exit_code=ExitCode.ENVIRONMENT_ERROR,
    )


def invalid_arguments(command: str, error: str, usage: Optional[str] = None) -> ErrorMessage:
    details = error
    if usage:
        details += f"\n\nUsage: {usage}"

    return ErrorMessage(
        message=f"Invalid arguments for command '{command}'",
        details=details,
        suggestions=[
            f'Use "qcr {command} --help" for detailed usage information',
            "Check the command syntax and required arguments",
        ],
        category=ErrorCategory.COMMAND,
        exit_code=ExitCode.INVALID_USAGE,
    )


def file_operation_error(operation: str, file_path: str, error: str) -> ErrorMessage:
    return ErrorMessage(
        message=f"Failed to {operation} file",
        details=f"File: {file_path}\nError: {error}",
        suggestions=[
            get_suggestion("CHECK_FILE_PERMISSIONS"),
            "Ensure the directory exists and is writable",
            "Verify the file path is correct",
        ],
        category=ErrorCategory.SYSTEM,
        exit_code=ExitCode.GENERAL_ERROR,
    )


def process_launch_error(command: str, error: str, not_found: bool = False) -> ErrorMessage:
    if not_found:
        suggestions = [
            f"Ensure {command} is installed and available in your PATH",
            get_suggestion("INSTALL_QWEN_CODE"),
            "Visit https://github.com/QwenLM/qwen-code for Qwen Code installation",
        ]
    else:
        suggestions = [
            "Check system resources and permissions",
            "Verify the command arguments are valid",
            "Try running the command directly to diagnose the issue",
        ]

    return ErrorMessage(
        message=f"Failed to launch {command}",
        details=error,
        suggestions=suggestions,
        category=ErrorCategory.SYSTEM,
        exit_code=ExitCode.COMMAND_NOT_FOUND if not_found else ExitCode.GENERAL_ERROR,
    )


def no_default_config(available_configs: List[str]) -> ErrorMessage:
    return ErrorMessage(
        message=f"{get_text('DEFAULT_CONFIG_NOT_SET')} and no configuration name provided",
        available_options=list(available_configs),
        suggestions=[
            get_suggestion("SET_DEFAULT_CONFIG"),
            "Specify a configuration name explicitly",
            get_suggestion("LIST_AVAILABLE_CONFIGS"),
        ],
        category=ErrorCategory.CONFIG_FILE,
        exit_code=ExitCode.CONFIG_INVALID,
    )


def unexpected_error(operation: str, error: BaseException) -> ErrorMessage:
    return ErrorMessage(
        message=f"Unexpected error occurred during {operation}",
        details=str(error) or type(error).__name__,
        suggestions=[
            "Try the operation again",
            "Check the configuration file for any issues",
            "Report this issue if it persists",
        ],
        category=ErrorCategory.SYSTEM,
        exit_code=ExitCode.GENERAL_ERROR,
    )


def resolution_error(problem: Problem) -> ErrorMessage:
    """把解析失败的变体映射为对应的用户错误"""
    if isinstance(problem, ConfigurationNotFound):
        return config_not_found(problem.name, list(problem.available))
    if isinstance(problem, ProviderMissing):
        return provider_not_found(problem.provider, list(problem.available))
    if isinstance(problem, ModelUnsupported):
        return model_not_found(problem.model, problem.provider, list(problem.available))
    if isinstance(problem, CredentialMissing):
        return credential_missing(problem)
    if isinstance(problem, NoDefaultConfiguration):
        return no_default_config(list(problem.available))
    return ErrorMessage(message=str(problem), exit_code=ExitCode.GENERAL_ERROR)
