"""配置校验

两类校验：
- validate_config_file：整个配置文件的结构校验（字段、URL、交叉引用、重名）
- validate_one / validate_all：单个配置是否可用，可选地做一次 API 连通性测试
"""

import logging
from collections import Counter
from typing import List, Optional

import httpx

from .config import ConfigFile, Provider
from .errors import (
    ApiKeyMissing,
    BaseUrlMissing,
    BuiltInModelUnsupported,
    ConfigurationNotFound,
    ConnectivityFailed,
    ConnectivityTimeout,
    ModelNotInProvider,
    ModelUnavailable,
    NoModelsConfigured,
    ProviderHasNoModels,
    Problem,
    ProviderNotInFile,
    RuntimeApiKeyRequired,
)
from .providers import get_builtin_provider
from .types import ConfigValidationResult, ModelSummary, ProviderSummary, ValidationResult
from .utils import is_valid_url, normalize_url

logger = logging.getLogger(__name__)

API_TEST_TIMEOUT = 10.0


def _duplicates(names: List[str]) -> List[str]:
    return [name for name, count in Counter(names).items() if count > 1]


def _validate_default_config(config: ConfigFile, errors: List[str], warnings: List[str]):
    if config.default_config is None:
        return
    if not config.default_config:
        warnings.append("default_config array is empty")
        return
    if len(config.default_config) > 1:
        warnings.append("Multiple default configurations found, only the first will be used")

    name = config.default_config[0].name
    if not name.strip():
        errors.append("default_config name cannot be empty")
    elif config.find_configuration(name) is None:
        errors.append(f'Default configuration "{name}" does not exist in configs array')


def _validate_configs(config: ConfigFile, errors: List[str]):
    for group_index, group in enumerate(config.configs):
        prefix = f"configs[{group_index}]"
        if not group.config:
            errors.append(f"{prefix}: config array cannot be empty")
        for entry_index, entry in enumerate(group.config):
            entry_prefix = f"{prefix}.config[{entry_index}]"
            for field_name in ("name", "provider", "model"):
                if not getattr(entry, field_name).strip():
                    errors.append(f"{entry_prefix}: {field_name} cannot be empty")


def _validate_provider(provider: Provider, index: int, errors: List[str], warnings: List[str]):
    prefix = f"providers[{index}]"
    if not provider.provider.strip():
        errors.append(f"{prefix}: provider cannot be empty")

    env = provider.env
    env_prefix = f"{prefix}.env"
    if not (env.api_key or "").strip():
        errors.append(f"{env_prefix}: api_key cannot be empty")

    if not (env.base_url or "").strip():
        errors.append(f"{env_prefix}: base_url cannot be empty")
    elif not is_valid_url(env.base_url):
        errors.append(f"{env_prefix}: base_url is not a valid URL format")

    if env.models is None:
        errors.append(f"{env_prefix}: models must be an array")
        return

    if not env.models:
        warnings.append(f"{env_prefix}: models array is empty")
    for model_index, entry in enumerate(env.models):
        if not entry.model.strip():
            errors.append(f"{env_prefix}.models[{model_index}]: model cannot be empty")

    duplicates = _duplicates([entry.model for entry in env.models])
    if duplicates:
        warnings.append(f"{env_prefix}: Duplicate model names found: {', '.join(duplicates)}")


def _validate_cross_references(config: ConfigFile, errors: List[str]):
    for group_index, group in enumerate(config.configs):
        for entry_index, entry in enumerate(group.config):
            if not entry.provider.strip():
                continue
            prefix = f"configs[{group_index}].config[{entry_index}]"
            provider = config.find_provider(entry.provider)
            if provider is None:
                errors.append(f'{prefix}: Provider "{entry.provider}" not found in providers array')
            elif entry.model.strip() and entry.model not in provider.model_names():
                errors.append(
                    f'{prefix}: Model "{entry.model}" not found in provider "{entry.provider}" models list'
                )


def validate_config_file(config: ConfigFile) -> ValidationResult:
    """配置文件结构校验"""
    errors: List[str] = []
    warnings: List[str] = []

    _validate_default_config(config, errors, warnings)
    _validate_configs(config, errors)
    for index, provider in enumerate(config.providers):
        _validate_provider(provider, index, errors, warnings)
    _validate_cross_references(config, errors)

    duplicate_configs = _duplicates(config.configuration_names())
    if duplicate_configs:
        errors.append(f"Duplicate configuration names found: {', '.join(duplicate_configs)}")

    duplicate_providers = _duplicates(config.provider_names())
    if duplicate_providers:
        errors.append(f"Duplicate provider names found: {', '.join(duplicate_providers)}")

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def validate_one(name: str, config: ConfigFile) -> ConfigValidationResult:
    """检查单个配置是否可用

    is_valid 只反映错误；警告不影响它，但命令层会把警告视为失败。
    """
    entry = config.find_configuration(name)
    if entry is None:
        return ConfigValidationResult(
            config_name=name,
            is_valid=False,
            errors=[ConfigurationNotFound(name=name)],
        )

    result = ConfigValidationResult(config_name=name, is_valid=True)
    provider = config.find_provider(entry.provider)
    builtin = get_builtin_provider(entry.provider)

    if provider is None:
        if builtin is None:
            result.is_valid = False
            result.errors.append(ProviderNotInFile(provider=entry.provider))
            return result

        result.provider = ProviderSummary(
            name=builtin.key,
            base_url=builtin.base_url,
            model_count=len(builtin.models),
        )
        supported = entry.model in builtin.models
        result.model = ModelSummary(name=entry.model, is_supported=supported)
        if not supported:
            result.errors.append(
                BuiltInModelUnsupported(model=entry.model, provider=entry.provider, available=builtin.models)
            )
        result.warnings.append(RuntimeApiKeyRequired(provider=entry.provider))
        result.is_valid = not result.errors
        return result

    env = provider.env
    if env.base_url:
        display_url = env.base_url
    else:
        display_url = builtin.base_url if builtin is not None else ""
    if env.models is not None:
        model_count = len(env.models)
    else:
        model_count = len(builtin.models) if builtin is not None else 0
    result.provider = ProviderSummary(name=provider.provider, base_url=display_url, model_count=model_count)

    if env.models is not None:
        supported = entry.model in provider.model_names()
        if not supported:
            result.errors.append(ModelNotInProvider(model=entry.model, provider=entry.provider))
    elif builtin is not None:
        supported = entry.model in builtin.models
        if not supported:
            result.errors.append(
                BuiltInModelUnsupported(model=entry.model, provider=entry.provider, available=builtin.models)
            )
    else:
        supported = False
        result.errors.append(ProviderHasNoModels(provider=entry.provider))
    result.model = ModelSummary(name=entry.model, is_supported=supported)

    if not env.api_key:
        if builtin is not None:
            result.warnings.append(RuntimeApiKeyRequired(provider=entry.provider))
        else:
            result.warnings.append(ApiKeyMissing(provider=entry.provider))

    if not env.base_url and builtin is None:
        result.warnings.append(BaseUrlMissing(provider=entry.provider))

    if env.models is not None and not env.models and builtin is None:
        result.warnings.append(NoModelsConfigured(provider=entry.provider))

    result.is_valid = not result.errors
    return result


async def check_connectivity(base_url: str, api_key: str, model: str,
                             client: Optional[httpx.AsyncClient] = None) -> Optional[Problem]:
    """对 {base_url}/models 做一次有超时的 GET，不重试

    返回 None 表示模型可用，否则返回描述失败原因的错误变体。
    """
    url = f"{normalize_url(base_url)}/models"
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=API_TEST_TIMEOUT)

    try:
        logger.debug("Testing API connectivity: GET %s", url)
        response = await client.get(url, headers=headers, timeout=API_TEST_TIMEOUT)
        if not response.is_success:
            return ConnectivityFailed(
                reason=f"{response.status_code} {response.reason_phrase}",
                base_url=base_url,
            )

        payload = response.json()
        data = payload.get("data") if isinstance(payload, dict) else None
        # 只有 OpenAI 风格的 data 列表才检查模型是否存在
        if not isinstance(data, list):
            return None
        ids = [item.get("id") for item in data if isinstance(item, dict)]
        if model not in ids:
            return ModelUnavailable(model=model)
        return None
    except httpx.TimeoutException:
        return ConnectivityTimeout(base_url=base_url)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError, TypeError) as e:
        return ConnectivityFailed(reason=str(e) or type(e).__name__, base_url=base_url)
    finally:
        if owns_client:
            await client.aclose()


async def validate_one_with_connectivity(name: str, config: ConfigFile, test_api: bool = False,
                                         client: Optional[httpx.AsyncClient] = None) -> ConfigValidationResult:
    result = validate_one(name, config)
    if not test_api or not result.is_valid:
        return result

    entry = config.find_configuration(name)
    provider = config.find_provider(entry.provider) if entry else None
    if provider is None:
        # 内置提供商没有本地凭据，无法测试
        return result

    problem = await check_connectivity(
        provider.env.base_url or "",
        provider.env.api_key or "",
        entry.model,
        client=client,
    )
    if problem is not None:
        result.errors.append(problem)
        result.is_valid = False
    return result


async def validate_all(config: ConfigFile, test_api: bool = False,
                       client: Optional[httpx.AsyncClient] = None) -> List[ConfigValidationResult]:
    """按文件顺序逐个校验，连通性测试依次进行"""
    results = []
    for name in config.configuration_names():
        results.append(await validate_one_with_connectivity(name, config, test_api, client=client))
    return results


def is_aggregate_valid(results: List[ConfigValidationResult]) -> bool:
    """汇总结果：每个配置都必须既无错误也无警告"""
    return all(result.is_fully_valid for result in results)
