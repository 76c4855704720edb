"""双语（英文/中文）消息渲染

错误变体（见 errors.py）只携带结构化字段，这里负责把它们渲染成用户可读的文本。
"""

import os
from dataclasses import fields, is_dataclass
from typing import Any, Dict, List, Mapping, Optional

ENGLISH = "en"
CHINESE = "zh"

_CHINESE_MARKERS = ("zh", "chinese", "cn")


def detect_language(environ: Optional[Mapping[str, str]] = None) -> str:
    """根据环境变量检测语言，QCR_LANG 优先"""
    if environ is None:
        environ = os.environ

    forced = environ.get("QCR_LANG", "").strip().lower()
    if forced in (ENGLISH, CHINESE):
        return forced

    lang = environ.get("LANG") or environ.get("LANGUAGE") or environ.get("LC_ALL") or ""
    lang = lang.lower()
    if any(marker in lang for marker in _CHINESE_MARKERS):
        return CHINESE
    return ENGLISH


MESSAGES: Dict[str, Dict[str, str]] = {
    "TOOL_NAME": {"en": "Qwen Code Router", "zh": "Qwen Code API 切换器"},
    "TOOL_DESCRIPTION": {
        "en": "Manage API configurations for Qwen Code",
        "zh": "管理 Qwen Code 的 API 配置",
    },
    "CONFIG_FILE_NOT_FOUND": {"en": "Configuration file not found", "zh": "未找到配置文件"},
    "CONFIG_VALIDATION_FAILED": {"en": "Configuration file validation failed", "zh": "配置文件验证失败"},
    "CONFIG_NOT_FOUND": {"en": "Configuration not found", "zh": "未找到配置"},
    "DEFAULT_CONFIG_NOT_SET": {"en": "No default configuration set", "zh": "未设置默认配置"},
    "ENV_VARS_NOT_SET": {"en": "Required environment variables are not set", "zh": "未设置必需的环境变量"},
    "ENV_VALIDATION_FAILED": {"en": "Environment variables validation failed", "zh": "环境变量验证失败"},
    "INVALID_ARGUMENTS": {"en": "Invalid arguments", "zh": "无效参数"},
    "AVAILABLE_OPTIONS": {"en": "Available options", "zh": "可用选项"},
    "SUGGESTIONS": {"en": "Suggestions", "zh": "建议"},
}

SUGGESTIONS: Dict[str, Dict[str, str]] = {
    "CREATE_CONFIG_FILE": {
        "en": "Create a configuration file in your current directory or user directory",
        "zh": "在当前目录或用户目录中创建配置文件",
    },
    "CHECK_FILE_PERMISSIONS": {
        "en": "Check file permissions and accessibility",
        "zh": "检查文件权限和可访问性",
    },
    "USE_EXAMPLE_CONFIG": {
        "en": "Use the example configuration files as a reference",
        "zh": "使用示例配置文件作为参考",
    },
    "SET_DEFAULT_CONFIG": {
        "en": 'Set a default configuration using "qcr set-default [config_name]"',
        "zh": '使用 "qcr set-default [config_name]" 设置默认配置',
    },
    "LIST_AVAILABLE_CONFIGS": {
        "en": 'Use "qcr list config" to see all available configurations',
        "zh": '使用 "qcr list config" 查看所有可用配置',
    },
    "ACTIVATE_CONFIG_FIRST": {
        "en": 'Use "qcr use [config_name]" to activate a configuration',
        "zh": '使用 "qcr use [config_name]" 激活配置',
    },
    "INSTALL_QWEN_CODE": {
        "en": "Ensure Qwen Code is installed and available in your PATH",
        "zh": "确保 Qwen Code 已安装并在 PATH 中可用",
    },
    "CHECK_API_KEY": {"en": "Verify API key format and validity", "zh": "验证 API 密钥格式和有效性"},
}

# 错误变体模板，键为变体类名；列表字段渲染为逗号分隔的字符串
PROBLEM_TEMPLATES: Dict[str, Dict[str, str]] = {
    "ConfigurationNotFound": {
        "en": "Configuration '{name}' not found",
        "zh": "未找到配置 '{name}'",
    },
    "ProviderMissing": {
        "en": "Provider '{provider}' not found",
        "zh": "未找到提供商 '{provider}'",
    },
    "ProviderNotInFile": {
        "en": "Provider '{provider}' not found in providers section",
        "zh": "提供商 '{provider}' 不在 providers 配置段中",
    },
    "ModelUnsupported": {
        "en": "Model '{model}' is not supported by provider '{provider}'",
        "zh": "提供商 '{provider}' 不支持模型 '{model}'",
    },
    "BuiltInModelUnsupported": {
        "en": "Model '{model}' not found in built-in provider '{provider}'. Supported models: {available}",
        "zh": "内置提供商 '{provider}' 中未找到模型 '{model}'。支持的模型: {available}",
    },
    "ModelNotInProvider": {
        "en": "Model '{model}' not found in provider '{provider}'",
        "zh": "提供商 '{provider}' 中未找到模型 '{model}'",
    },
    "ProviderHasNoModels": {
        "en": "Provider '{provider}' has no models defined",
        "zh": "提供商 '{provider}' 未定义任何模型",
    },
    "CredentialMissing": {
        "en": 'API key not found for provider "{provider}". Please set {env_var} or OPENAI_API_KEY environment variable.',
        "zh": '未找到提供商 "{provider}" 的 API 密钥。请设置 {env_var} 或 OPENAI_API_KEY 环境变量。',
    },
    "NoDefaultConfiguration": {
        "en": "No default configuration set",
        "zh": "未设置默认配置",
    },
    "ApiKeyMissing": {
        "en": "No API key configured for provider '{provider}'",
        "zh": "提供商 '{provider}' 未配置 API 密钥",
    },
    "RuntimeApiKeyRequired": {
        "en": "Using built-in provider '{provider}'. API key must be set via environment variable at runtime.",
        "zh": "正在使用内置提供商 '{provider}'，运行时必须通过环境变量设置 API 密钥。",
    },
    "BaseUrlMissing": {
        "en": "No base URL configured for provider '{provider}'",
        "zh": "提供商 '{provider}' 未配置基础 URL",
    },
    "NoModelsConfigured": {
        "en": "Provider '{provider}' has no models configured",
        "zh": "提供商 '{provider}' 没有配置任何模型",
    },
    "ConnectivityFailed": {
        "en": "API test failed: {reason}",
        "zh": "API 测试失败: {reason}",
    },
    "ConnectivityTimeout": {
        "en": "API test timeout: Unable to connect to {base_url}",
        "zh": "API 测试超时: 无法连接到 {base_url}",
    },
    "ModelUnavailable": {
        "en": "Model '{model}' not available in API response",
        "zh": "API 响应中没有可用的模型 '{model}'",
    },
}


def get_text(key: str, language: Optional[str] = None) -> str:
    language = language or detect_language()
    entry = MESSAGES[key]
    return entry.get(language) or entry[ENGLISH]


def get_suggestion(key: str, language: Optional[str] = None) -> str:
    language = language or detect_language()
    entry = SUGGESTIONS[key]
    return entry.get(language) or entry[ENGLISH]


def format_suggestions(keys: List[str], language: Optional[str] = None) -> List[str]:
    return [get_suggestion(key, language) for key in keys]


def render(problem: Any, language: Optional[str] = None) -> str:
    """把错误变体渲染为文本，缺少译文时回退到英文"""
    language = language or detect_language()
    templates = PROBLEM_TEMPLATES[type(problem).__name__]
    template = templates.get(language) or templates[ENGLISH]

    values: Dict[str, Any] = {}
    if is_dataclass(problem):
        for field in fields(problem):
            value = getattr(problem, field.name)
            if isinstance(value, (list, tuple)):
                value = ", ".join(value)
            values[field.name] = value
    return template.format(**values)
