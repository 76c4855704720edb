"""命令层：每个命令返回 CommandResult，由 cli.py 转换为输出和退出码"""

from .chk_cmd import chk_command
from .list_cmd import list_command
from .router_cmd import router_command
from .run_cmd import run_command
from .set_default_cmd import set_default_command
from .status_cmd import status_command
from .use_cmd import use_command

__all__ = [
    "chk_command",
    "list_command",
    "router_command",
    "run_command",
    "set_default_command",
    "status_command",
    "use_command",
]
