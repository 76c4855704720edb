"""解析引擎：把配置名或 provider/model 组合解析为环境变量三元组

解析失败以 ResolutionResult(success=False, error=...) 返回，不抛出异常；
引擎本身不修改进程环境。
"""

import logging
from typing import List, Optional

from .config import ConfigEntry, ConfigFile
from .env import CredentialSource, EnvTriple
from .errors import (
    ConfigurationNotFound,
    CredentialMissing,
    ModelUnsupported,
    NoDefaultConfiguration,
    ProviderMissing,
)
from .providers import SOURCE_BUILTIN, SOURCE_CONFIG, ProviderChain, ProviderRecord
from .types import ResolutionResult, ResolutionSource
from .utils import unique

logger = logging.getLogger(__name__)


def resolve_by_name(name: str, config: ConfigFile) -> ResolutionResult:
    entry = config.find_configuration(name)
    if entry is None:
        return ResolutionResult(
            success=False,
            error=ConfigurationNotFound(name=name, available=tuple(config.configuration_names())),
        )

    provider = config.find_provider(entry.provider)
    if provider is None:
        return ResolutionResult(
            success=False,
            entry=entry,
            error=ProviderMissing(
                provider=entry.provider,
                configuration=name,
                available=tuple(config.provider_names()),
            ),
        )

    models = provider.model_names()
    if entry.model not in models:
        return ResolutionResult(
            success=False,
            entry=entry,
            error=ModelUnsupported(model=entry.model, provider=entry.provider, available=tuple(models)),
        )

    record = ProviderRecord(
        name=provider.provider,
        source=SOURCE_CONFIG,
        base_url=provider.env.base_url or "",
        api_key=provider.env.api_key or "",
        models=models,
    )
    logger.debug("Resolved configuration %s to %s/%s", name, entry.provider, entry.model)
    return ResolutionResult(
        success=True,
        env=EnvTriple(api_key=record.api_key, base_url=record.base_url, model=entry.model),
        entry=entry,
        provider=record,
        source=ResolutionSource.CONFIGURATION,
    )


def _matching_entry(config: Optional[ConfigFile], provider: str, model: str) -> Optional[ConfigEntry]:
    if config is None:
        return None
    for entry in config.all_entries():
        if entry.provider.lower() == provider.lower() and entry.model.lower() == model.lower():
            return entry
    return None


def resolve_by_provider_model(provider_name: str, model_name: str,
                              config: Optional[ConfigFile] = None,
                              credentials: Optional[CredentialSource] = None) -> ResolutionResult:
    """按提供商链顺序解析 provider/model，先成功者优先

    提供商名称和模型名称大小写不敏感，输出使用存储时的大小写。
    """
    chain = ProviderChain.for_config(config)
    credentials = credentials or CredentialSource()

    matched: List[ProviderRecord] = []
    for record in chain.matches(provider_name):
        matched.append(record)
        model = record.find_model(model_name)
        if model is None:
            continue

        if record.source == SOURCE_BUILTIN:
            api_key = credentials.get(record.name)
            if api_key is None:
                return ResolutionResult(
                    success=False,
                    provider=record,
                    error=CredentialMissing(
                        provider=record.name,
                        env_var=CredentialSource.variable_for(record.name),
                    ),
                )
            source = ResolutionSource.BUILT_IN_PROVIDER
            entry = None
        else:
            api_key = record.api_key
            entry = _matching_entry(config, record.name, model)
            source = ResolutionSource.CONFIGURATION if entry else ResolutionSource.CONFIGURED_PROVIDER

        logger.debug("Resolved %s/%s via %s", provider_name, model_name, source.value)
        return ResolutionResult(
            success=True,
            env=EnvTriple(api_key=api_key, base_url=record.base_url_for(model), model=model),
            entry=entry or ConfigEntry(name=f"{record.name}/{model}", provider=record.name, model=model),
            provider=record,
            source=source,
        )

    if matched:
        available = unique([model for record in matched for model in record.models])
        return ResolutionResult(
            success=False,
            provider=matched[0],
            error=ModelUnsupported(model=model_name, provider=provider_name, available=tuple(available)),
        )

    return ResolutionResult(
        success=False,
        error=ProviderMissing(provider=provider_name, available=tuple(chain.names())),
    )


def resolve_default(config: ConfigFile) -> ResolutionResult:
    default = config.default_name()
    if not default:
        return ResolutionResult(
            success=False,
            error=NoDefaultConfiguration(available=tuple(config.configuration_names())),
        )
    return resolve_by_name(default, config)


def set_default(config: ConfigFile, name: str) -> Optional[str]:
    """修改内存中的默认配置指针，返回之前的默认配置名"""
    return config.set_default(name)

