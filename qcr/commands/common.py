from pathlib import Path
from typing import List, Mapping, Optional, Union

from ..config import ConfigFileNotFoundError, ConfigLoadError, ConfigManager, LoadedConfig
from ..env import EnvTriple
from ..errors import (
    CommandError,
    config_file_not_found,
    config_load_error,
    config_validation_error,
    create_error_result,
)


def load_config(current_dir: Optional[Union[str, Path]] = None,
                environ: Optional[Mapping[str, str]] = None,
                require_valid: bool = True) -> LoadedConfig:
    """加载配置文件，失败时抛出携带错误结果的 CommandError"""
    try:
        loaded = ConfigManager(current_dir, environ=environ).load()
    except ConfigFileNotFoundError as e:
        raise CommandError(create_error_result(config_file_not_found(e.search_paths)))
    except ConfigLoadError as e:
        raise CommandError(create_error_result(config_load_error(e.file_path, e.reason)))

    if require_valid and not loaded.validation.is_valid:
        raise CommandError(create_error_result(
            config_validation_error(loaded.validation.errors, loaded.validation.warnings)
        ))
    return loaded


def describe_environment(triple: EnvTriple) -> List[str]:
    """详细模式下展示的环境变量（API 密钥已遮盖）"""
    lines = ["Environment variables set:"]
    lines.extend(f"  {key}: {value}" for key, value in triple.masked().items())
    return lines
