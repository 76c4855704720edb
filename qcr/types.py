"""命令层与引擎之间传递的瞬态结果类型"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .config import ConfigEntry
    from .env import EnvTriple
    from .errors import Problem
    from .providers import ProviderRecord


class ResolutionSource(Enum):
    """解析结果来源"""
    CONFIGURATION = "configuration"
    CONFIGURED_PROVIDER = "configured provider"
    BUILT_IN_PROVIDER = "built-in provider"
    ENVIRONMENT = "environment"


@dataclass
class CommandResult:
    """命令执行结果，由分发器转换为输出和退出码"""
    success: bool
    message: str
    details: Optional[str] = None
    exit_code: int = 0


@dataclass
class ValidationResult:
    """通用校验结果（配置文件结构、环境变量）"""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ResolutionResult:
    """配置解析结果"""
    success: bool
    env: Optional["EnvTriple"] = None
    entry: Optional["ConfigEntry"] = None
    provider: Optional["ProviderRecord"] = None
    source: Optional[ResolutionSource] = None
    error: Optional["Problem"] = None

    @property
    def message(self) -> str:
        return str(self.error) if self.error is not None else ""


@dataclass
class ProviderSummary:
    name: str
    base_url: str
    model_count: int


@dataclass
class ModelSummary:
    name: str
    is_supported: bool


@dataclass
class ConfigValidationResult:
    """单个配置的校验结果

    is_valid 只由错误决定；命令层额外把警告视为失败。
    """
    config_name: str
    is_valid: bool
    errors: List["Problem"] = field(default_factory=list)
    warnings: List["Problem"] = field(default_factory=list)
    provider: Optional[ProviderSummary] = None
    model: Optional[ModelSummary] = None

    @property
    def is_fully_valid(self) -> bool:
        return self.is_valid and not self.errors and not self.warnings
