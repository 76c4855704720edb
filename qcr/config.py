import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from .types import ValidationResult

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = ("config.yaml", "config.yml", "config.json")
USER_DIR_NAME = ".qcr"

FORMAT_YAML = "yaml"
FORMAT_JSON = "json"


class ModelEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    model: str


class ProviderEnv(BaseModel):
    model_config = ConfigDict(extra="allow")

    api_key: Optional[str] = None
    base_url: Optional[str] = None
    # None 表示未定义，与空列表含义不同
    models: Optional[List[ModelEntry]] = None


class Provider(BaseModel):
    model_config = ConfigDict(extra="allow")

    provider: str
    env: ProviderEnv

    def model_names(self) -> List[str]:
        return [entry.model for entry in self.env.models or []]


class ConfigEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    provider: str
    model: str


class ConfigGroup(BaseModel):
    model_config = ConfigDict(extra="allow")

    config: List[ConfigEntry]


class DefaultConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str


class ConfigFile(BaseModel):
    """配置文件的内存表示"""
    model_config = ConfigDict(extra="allow")

    default_config: Optional[List[DefaultConfig]] = None
    configs: List[ConfigGroup]
    providers: List[Provider]

    @classmethod
    def empty(cls) -> "ConfigFile":
        return cls(configs=[], providers=[])

    def all_entries(self) -> List[ConfigEntry]:
        """按文件顺序展开所有配置分组"""
        return [entry for group in self.configs for entry in group.config]

    def configuration_names(self) -> List[str]:
        return [entry.name for entry in self.all_entries()]

    def find_configuration(self, name: str) -> Optional[ConfigEntry]:
        for entry in self.all_entries():
            if entry.name == name:
                return entry
        return None

    def find_provider(self, name: str) -> Optional[Provider]:
        """精确匹配（区分大小写）"""
        for provider in self.providers:
            if provider.provider == name:
                return provider
        return None

    def provider_names(self) -> List[str]:
        return [provider.provider for provider in self.providers]

    def default_name(self) -> Optional[str]:
        if self.default_config:
            return self.default_config[0].name
        return None

    def set_default(self, name: str) -> Optional[str]:
        """替换默认配置指针，返回之前的默认配置名"""
        previous = self.default_name()
        self.default_config = [DefaultConfig(name=name)]
        return previous


class ConfigFileNotFoundError(Exception):
    def __init__(self, search_paths: List[Path]):
        self.search_paths = [str(path) for path in search_paths]
        super().__init__(
            "No configuration file found. Searched in: " + ", ".join(self.search_paths)
        )


class ConfigLoadError(Exception):
    def __init__(self, file_path: Union[str, Path], reason: str):
        self.file_path = str(file_path)
        self.reason = reason
        super().__init__(f"{self.file_path}: {reason}")


@dataclass
class LoadedConfig:
    config: ConfigFile
    validation: ValidationResult
    file_path: Path
    file_format: str


def detect_format(file_path: Union[str, Path]) -> str:
    return FORMAT_JSON if Path(file_path).suffix.lower() == ".json" else FORMAT_YAML


def _format_location(loc) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def parse_config(content: str, file_format: str, file_path: Union[str, Path] = "<string>") -> ConfigFile:
    """解析配置文件内容，结构类型错误抛出 ConfigLoadError"""
    try:
        if file_format == FORMAT_JSON:
            data = json.loads(content) if content.strip() else None
        else:
            data = yaml.safe_load(content)
    except json.JSONDecodeError as e:
        raise ConfigLoadError(file_path, f"Failed to parse JSON: {e}")
    except yaml.YAMLError as e:
        raise ConfigLoadError(file_path, f"Failed to parse YAML: {e}")

    if data is None:
        raise ConfigLoadError(file_path, "Configuration file is empty or contains only comments")
    if not isinstance(data, dict):
        raise ConfigLoadError(file_path, "Configuration file must contain an object at the root level")

    try:
        return ConfigFile.model_validate(data)
    except ValidationError as e:
        problems = [f"{_format_location(err['loc'])}: {err['msg']}" for err in e.errors()]
        raise ConfigLoadError(file_path, "Invalid configuration structure: " + "; ".join(problems))


def dump_config(config: ConfigFile, file_format: str) -> str:
    data: Dict[str, Any] = config.model_dump(exclude_unset=True)
    if file_format == FORMAT_JSON:
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)


class ConfigManager:
    """发现、读取和写回配置文件

    搜索顺序：当前目录的 config.yaml / config.yml / config.json，
    然后是用户目录（~/.qcr 或 QCR_HOME）下的同名文件。QCR_CONFIG 可指定确切路径。
    """

    def __init__(self, current_dir: Optional[Union[str, Path]] = None,
                 environ: Optional[Mapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ
        self.current_dir = Path(current_dir) if current_dir else Path.cwd()
        self.user_dir = self._get_user_dir()

    def _get_user_dir(self) -> Path:
        override = self.environ.get("QCR_HOME")
        if override:
            return Path(override).expanduser()
        return Path.home() / USER_DIR_NAME

    def search_paths(self) -> List[Path]:
        explicit = self.environ.get("QCR_CONFIG")
        if explicit:
            return [Path(explicit).expanduser()]

        paths = [self.current_dir / name for name in CONFIG_FILE_NAMES]
        paths.extend(self.user_dir / name for name in CONFIG_FILE_NAMES)
        return paths

    def discover(self) -> Optional[Path]:
        for path in self.search_paths():
            if path.is_file():
                return path
        return None

    def load(self) -> LoadedConfig:
        from .validation import validate_config_file

        file_path = self.discover()
        if file_path is None:
            raise ConfigFileNotFoundError(self.search_paths())

        logger.debug("Loading configuration from %s", file_path)
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise ConfigLoadError(file_path, f"Failed to read configuration file: {e}")

        file_format = detect_format(file_path)
        config = parse_config(content, file_format, file_path)
        return LoadedConfig(
            config=config,
            validation=validate_config_file(config),
            file_path=file_path,
            file_format=file_format,
        )

    def save(self, config: ConfigFile, file_path: Union[str, Path],
             file_format: Optional[str] = None):
        file_path = Path(file_path)
        file_format = file_format or detect_format(file_path)

        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(dump_config(config, file_format))
        logger.debug("Saved configuration to %s (%s)", file_path, file_format)
