"""
Qwen Code Router - Qwen Code API配置切换工具

一个轻量级的命令行工具，用于在不同的API提供商和模型之间切换 Qwen Code 的运行配置。
"""

__version__ = "0.1.1"
__author__ = "Qwen Code Router Contributors"
__description__ = "Manage API configurations for Qwen Code"

from .config import ConfigManager, ConfigFile, ConfigEntry, Provider
from .env import EnvManager, EnvTriple, CredentialSource
from .providers import BUILTIN_PROVIDERS, ProviderChain
from .resolver import resolve_by_name, resolve_by_provider_model, resolve_default
from .validation import validate_config_file, validate_one, validate_all
from .utils import is_valid_url, mask_api_key

__all__ = [
    "ConfigManager",
    "ConfigFile",
    "ConfigEntry",
    "Provider",
    "EnvManager",
    "EnvTriple",
    "CredentialSource",
    "BUILTIN_PROVIDERS",
    "ProviderChain",
    "resolve_by_name",
    "resolve_by_provider_model",
    "resolve_default",
    "validate_config_file",
    "validate_one",
    "validate_all",
    "is_valid_url",
    "mask_api_key",
]
