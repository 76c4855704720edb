"""内置提供商表与按名称有序查找的提供商链"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from .config import ConfigFile

RESOURCE_PLACEHOLDER = "[resource]"

SOURCE_CONFIG = "config"
SOURCE_BUILTIN = "builtin"


@dataclass(frozen=True)
class BuiltInProvider:
    key: str
    display_name: str
    base_url: str
    models: Tuple[str, ...]

    def base_url_for(self, model: str) -> str:
        """替换 URL 模板中的资源占位符"""
        if RESOURCE_PLACEHOLDER not in self.base_url:
            return self.base_url
        return self.base_url.replace(RESOURCE_PLACEHOLDER, model.lower().replace("_", "-"))


BUILTIN_PROVIDERS: Dict[str, BuiltInProvider] = {
    "openai": BuiltInProvider(
        key="openai",
        display_name="OpenAI",
        base_url="https://api.openai.com/v1",
        models=(
            "gpt-4",
            "gpt-4-turbo",
            "gpt-4-turbo-preview",
            "gpt-4-0125-preview",
            "gpt-4-1106-preview",
            "gpt-3.5-turbo",
            "gpt-3.5-turbo-0125",
            "gpt-3.5-turbo-1106",
            "gpt-3.5-turbo-16k",
        ),
    ),
    "azure": BuiltInProvider(
        key="azure",
        display_name="Azure OpenAI",
        base_url="https://[resource].openai.azure.com/openai",
        models=(
            "gpt-4",
            "gpt-4-turbo",
            "gpt-4-32k",
            "gpt-35-turbo",
            "gpt-35-turbo-16k",
        ),
    ),
    "anthropic": BuiltInProvider(
        key="anthropic",
        display_name="Anthropic",
        base_url="https://api.anthropic.com/v1",
        models=(
            "claude-3-opus",
            "claude-3-sonnet",
            "claude-3-haiku",
            "claude-3-opus-20240229",
            "claude-3-sonnet-20240229",
            "claude-3-haiku-20240307",
            "claude-2.1",
            "claude-2.0",
            "claude-instant-1.2",
        ),
    ),
    "google": BuiltInProvider(
        key="google",
        display_name="Google AI",
        base_url="https://generativelanguage.googleapis.com/v1",
        models=(
            "gemini-pro",
            "gemini-pro-vision",
            "gemini-1.5-pro",
            "gemini-1.5-flash",
        ),
    ),
}


def get_builtin_provider(name: str) -> Optional[BuiltInProvider]:
    return BUILTIN_PROVIDERS.get(name.lower())


def find_model(models: Sequence[str], model: str) -> Optional[str]:
    """大小写不敏感地查找模型，返回存储时的大小写"""
    wanted = model.lower()
    for candidate in models:
        if candidate.lower() == wanted:
            return candidate
    return None


@dataclass
class ProviderRecord:
    """提供商链中某一张表返回的统一记录"""
    name: str
    source: str
    base_url: str = ""
    api_key: str = ""
    models: List[str] = field(default_factory=list)
    builtin: Optional[BuiltInProvider] = None

    def find_model(self, model: str) -> Optional[str]:
        return find_model(self.models, model)

    def base_url_for(self, model: str) -> str:
        if self.builtin is not None:
            return self.builtin.base_url_for(model)
        return self.base_url


class ProviderTable(ABC):
    """按名称查找提供商的表"""

    def __init__(self, label: str):
        self.label = label

    @abstractmethod
    def lookup(self, name: str) -> Optional[ProviderRecord]:
        """大小写不敏感地查找提供商"""
        pass

    @abstractmethod
    def names(self) -> List[str]:
        pass


class ConfiguredProviderTable(ProviderTable):
    """配置文件中的 providers 段"""

    def __init__(self, config: "ConfigFile"):
        super().__init__("configuration file")
        self.config = config

    def lookup(self, name: str) -> Optional[ProviderRecord]:
        wanted = name.lower()
        for provider in self.config.providers:
            if provider.provider.lower() == wanted:
                return ProviderRecord(
                    name=provider.provider,
                    source=SOURCE_CONFIG,
                    base_url=provider.env.base_url or "",
                    api_key=provider.env.api_key or "",
                    models=provider.model_names(),
                )
        return None

    def names(self) -> List[str]:
        return [provider.provider for provider in self.config.providers]


class BuiltInProviderTable(ProviderTable):
    """随工具发布的内置提供商"""

    def __init__(self, providers: Optional[Dict[str, BuiltInProvider]] = None):
        super().__init__("built-in")
        self.providers = BUILTIN_PROVIDERS if providers is None else providers

    def lookup(self, name: str) -> Optional[ProviderRecord]:
        builtin = self.providers.get(name.lower())
        if builtin is None:
            return None
        return ProviderRecord(
            name=builtin.key,
            source=SOURCE_BUILTIN,
            base_url=builtin.base_url,
            models=list(builtin.models),
            builtin=builtin,
        )

    def names(self) -> List[str]:
        return list(self.providers.keys())


class ProviderChain:
    """按顺序查询多张提供商表，先匹配者优先"""

    def __init__(self, tables: Sequence[ProviderTable]):
        self.tables = list(tables)

    @classmethod
    def for_config(cls, config: Optional["ConfigFile"] = None) -> "ProviderChain":
        tables: List[ProviderTable] = []
        if config is not None:
            tables.append(ConfiguredProviderTable(config))
        tables.append(BuiltInProviderTable())
        return cls(tables)

    def matches(self, name: str) -> Iterator[ProviderRecord]:
        for table in self.tables:
            record = table.lookup(name)
            if record is not None:
                yield record

    def names(self) -> List[str]:
        """所有表中的提供商名称，按表顺序去重"""
        seen = set()
        names = []
        for table in self.tables:
            for name in table.names():
                if name not in seen:
                    seen.add(name)
                    names.append(name)
        return names
