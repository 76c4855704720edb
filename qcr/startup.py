"""启动流程：确定 run 命令要交给下游进程的环境变量三元组

来源优先级：显式指定的配置名 > 当前环境中完整的三元组 > 配置文件中的默认配置。
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, MutableMapping, Optional, Union

from .config import ConfigFileNotFoundError, ConfigLoadError, ConfigManager
from .env import EnvManager, EnvTriple
from .errors import (
    ErrorMessage,
    config_file_not_found,
    config_load_error,
    config_validation_error,
    environment_not_set,
    environment_validation_error,
    no_default_config,
    resolution_error,
)
from .resolver import resolve_by_name
from .types import ResolutionSource

logger = logging.getLogger(__name__)


class StartupStep(Enum):
    CHECKING_CONFIG_FILE = "checking_config_file"
    CHECKING_DEFAULT_CONFIG = "checking_default_config"
    VALIDATING_DEFAULT_CONFIG = "validating_default_config"
    SETTING_ENVIRONMENT = "setting_environment"
    READY = "ready"
    FAILED = "failed"


@dataclass
class StartupState:
    step: StartupStep
    triple: Optional[EnvTriple] = None
    source: Optional[ResolutionSource] = None
    config_name: Optional[str] = None
    file_path: Optional[Path] = None
    failed_step: Optional[StartupStep] = None
    error: Optional[ErrorMessage] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def ready(self) -> bool:
        return self.step == StartupStep.READY

    def fail(self, step: StartupStep, error: ErrorMessage) -> "StartupState":
        logger.debug("Startup failed at %s: %s", step.value, error.message)
        self.step = StartupStep.FAILED
        self.failed_step = step
        self.error = error
        return self


def prepare_launch(config_name: Optional[str] = None,
                   current_dir: Optional[Union[str, Path]] = None,
                   environ: Optional[MutableMapping[str, str]] = None) -> StartupState:
    env_manager = EnvManager(environ)
    state = StartupState(step=StartupStep.CHECKING_CONFIG_FILE, config_name=config_name)

    triple = env_manager.read_triple() if config_name is None else None
    if triple is not None:
        state.triple = triple
        state.source = ResolutionSource.ENVIRONMENT
    else:
        try:
            loaded = ConfigManager(current_dir, environ=env_manager.environ).load()
        except ConfigFileNotFoundError as e:
            if config_name is None:
                return state.fail(state.step, environment_not_set(env_manager.missing_variables()))
            return state.fail(state.step, config_file_not_found(e.search_paths))
        except ConfigLoadError as e:
            return state.fail(state.step, config_load_error(e.file_path, e.reason))

        state.file_path = loaded.file_path
        if not loaded.validation.is_valid:
            return state.fail(state.step, config_validation_error(loaded.validation.errors,
                                                                  loaded.validation.warnings))

        state.step = StartupStep.CHECKING_DEFAULT_CONFIG
        if config_name is None:
            config_name = loaded.config.default_name()
            if not config_name:
                return state.fail(state.step, no_default_config(loaded.config.configuration_names()))
            state.config_name = config_name

        state.step = StartupStep.VALIDATING_DEFAULT_CONFIG
        resolution = resolve_by_name(config_name, loaded.config)
        if not resolution.success:
            return state.fail(state.step, resolution_error(resolution.error))
        state.triple = resolution.env
        state.source = resolution.source

    state.step = StartupStep.SETTING_ENVIRONMENT
    env_validation = env_manager.validate_environment(state.triple.as_environ())
    state.warnings = env_validation.warnings
    if not env_validation.is_valid:
        return state.fail(state.step, environment_validation_error(env_validation.errors,
                                                                   env_validation.warnings))

    state.step = StartupStep.READY
    return state
