import os
import sys
import platform
from typing import Dict, List
from urllib.parse import urlparse


def is_valid_url(url: str) -> bool:
    """验证URL是否有效（需要协议和主机部分）"""
    if not url or not url.strip():
        return False

    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False

    return bool(parsed.scheme) and bool(parsed.netloc)


def is_https_url(url: str) -> bool:
    return urlparse(url.strip()).scheme.lower() == "https"


def normalize_url(url: str) -> str:
    """去掉首尾空白和结尾的斜杠"""
    return url.strip().rstrip("/")


def mask_api_key(value: str) -> str:
    """遮盖 API 密钥，只显示前 8 位"""
    if not value:
        return ""
    return f"{value[:8]}..." if len(value) > 8 else "***"


def unique(items: List[str]) -> List[str]:
    """按首次出现的顺序去重"""
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def format_problem_list(title: str, items: List[str], marker: str = "-") -> str:
    lines = [f"{title}:"]
    lines.extend(f"  {marker} {item}" for item in items)
    return "\n".join(lines)


def get_system_info() -> Dict[str, str]:
    """获取系统信息"""
    return {
        "platform": platform.system(),
        "python_version": sys.version.split()[0],
        "shell": os.environ.get("SHELL", os.environ.get("COMSPEC", "unknown")),
    }
