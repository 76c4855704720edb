import os
import logging
import platform
from dataclasses import dataclass
from typing import Dict, List, MutableMapping, Mapping, Optional

from .types import ValidationResult
from .utils import is_https_url, is_valid_url, mask_api_key

logger = logging.getLogger(__name__)

API_KEY_VAR = "OPENAI_API_KEY"
BASE_URL_VAR = "OPENAI_BASE_URL"
MODEL_VAR = "OPENAI_MODEL"
REQUIRED_ENV_VARS = (API_KEY_VAR, BASE_URL_VAR, MODEL_VAR)

MIN_API_KEY_LENGTH = 10


@dataclass(frozen=True)
class EnvTriple:
    """交给下游进程的三个环境变量"""
    api_key: str
    base_url: str
    model: str

    def as_environ(self) -> Dict[str, str]:
        return {
            API_KEY_VAR: self.api_key,
            BASE_URL_VAR: self.base_url,
            MODEL_VAR: self.model,
        }

    def masked(self) -> Dict[str, str]:
        return {
            API_KEY_VAR: mask_api_key(self.api_key),
            BASE_URL_VAR: self.base_url,
            MODEL_VAR: self.model,
        }


class CredentialSource:
    """内置提供商的 API 密钥来源：先找 {PROVIDER}_API_KEY，再回退到 OPENAI_API_KEY"""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ

    @staticmethod
    def variable_for(provider: str) -> str:
        return f"{provider.upper().replace('-', '_')}_API_KEY"

    def get(self, provider: str) -> Optional[str]:
        for var in (self.variable_for(provider), API_KEY_VAR):
            value = self.environ.get(var, "")
            if value.strip():
                return value
        return None


class EnvManager:
    """环境变量的读取、校验和导出

    所有操作都作用于显式传入的映射（默认为 os.environ），
    只有启动下游进程时才需要构建真正的进程环境。
    """

    def __init__(self, environ: Optional[MutableMapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ
        self.system = platform.system()

    def apply_triple(self, triple: EnvTriple) -> Dict[str, str]:
        """写入三元组；重复调用只会覆盖相同的三个变量"""
        applied = triple.as_environ()
        self.environ.update(applied)
        logger.debug("Applied environment triple for model %s", triple.model)
        return applied

    def get_current_env(self) -> Dict[str, str]:
        return {var: self.environ.get(var, "") for var in REQUIRED_ENV_VARS}

    def missing_variables(self) -> List[str]:
        return [var for var in REQUIRED_ENV_VARS if not self.environ.get(var, "").strip()]

    def read_triple(self) -> Optional[EnvTriple]:
        """三个变量都存在且非空时返回三元组"""
        if self.missing_variables():
            return None
        current = self.get_current_env()
        return EnvTriple(
            api_key=current[API_KEY_VAR],
            base_url=current[BASE_URL_VAR],
            model=current[MODEL_VAR],
        )

    def validate_environment(self, variables: Optional[Mapping[str, str]] = None) -> ValidationResult:
        """通用环境变量校验：存在、非空、URL 格式；短密钥和非 HTTPS 只产生警告"""
        if variables is None:
            variables = self.environ

        errors = []
        warnings = []

        for var in REQUIRED_ENV_VARS:
            value = variables.get(var)
            if value is None:
                errors.append(f"Missing required environment variable: {var}")
            elif not value.strip():
                errors.append(f"Environment variable {var} cannot be empty")

        base_url = variables.get(BASE_URL_VAR, "")
        if base_url.strip():
            if not is_valid_url(base_url):
                errors.append(f"{BASE_URL_VAR} is not a valid URL: {base_url}")
            elif not is_https_url(base_url):
                warnings.append(f"{BASE_URL_VAR} does not use HTTPS, which may not be secure")

        api_key = variables.get(API_KEY_VAR, "")
        if api_key.strip() and len(api_key.strip()) < MIN_API_KEY_LENGTH:
            warnings.append(f"{API_KEY_VAR} seems unusually short, please verify it's correct")

        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    def build_child_env(self, triple: EnvTriple) -> Dict[str, str]:
        """下游进程的环境：当前环境加上三元组"""
        child_env = dict(self.environ)
        child_env.update(triple.as_environ())
        return child_env

    def export_statements(self, triple: EnvTriple, shell: Optional[str] = None) -> List[str]:
        """生成可供 eval 的导出语句"""
        shell = shell if shell is not None else self._detect_shell()
        lines = []
        for key, value in triple.as_environ().items():
            if shell == "fish":
                lines.append(f'set -gx {key} "{_escape_double_quoted(value)}"')
            elif shell == "powershell":
                quoted = value.replace("'", "''")
                lines.append(f"$env:{key}='{quoted}'")
            elif shell == "cmd":
                lines.append(f"set {key}={value}")
            else:
                lines.append(f'export {key}="{_escape_double_quoted(value)}"')
        return lines

    def _detect_shell(self) -> str:
        if self.system == "Windows" and not self.environ.get("SHELL"):
            return "powershell" if self.environ.get("PSModulePath") else "cmd"

        shell = os.path.basename(self.environ.get("SHELL", ""))
        if shell == "fish":
            return "fish"
        return "sh"


def _escape_double_quoted(value: str) -> str:
    for char in ("\\", '"', "$", "`"):
        value = value.replace(char, "\\" + char)
    return value
