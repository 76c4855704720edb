"""启动下游可执行程序（默认 qwen），继承标准输入输出并转发终止信号"""

import os
import logging
import platform
import shutil
import signal
import subprocess
import threading
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from .errors import ExitCode

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "qwen"
FORWARDED_SIGNALS = ("SIGINT", "SIGTERM")


@dataclass
class LaunchOutcome:
    """子进程的结束方式"""
    exit_code: int
    signal_name: Optional[str] = None

    @property
    def terminated_by_signal(self) -> bool:
        return self.signal_name is not None


def outcome_from_returncode(returncode: int) -> LaunchOutcome:
    """负的返回码表示被信号终止：SIGINT 映射为 130，其它信号映射为 1"""
    if returncode >= 0:
        return LaunchOutcome(exit_code=returncode)

    signum = -returncode
    try:
        name = signal.Signals(signum).name
    except ValueError:
        name = f"SIG{signum}"
    exit_code = ExitCode.INTERRUPTED if name == "SIGINT" else ExitCode.GENERAL_ERROR
    return LaunchOutcome(exit_code=int(exit_code), signal_name=name)


class ProcessLauncher:
    def __init__(self, executable: Optional[str] = None, environ: Optional[Mapping[str, str]] = None):
        environ = os.environ if environ is None else environ
        self.executable = executable or environ.get("QCR_EXECUTABLE") or DEFAULT_EXECUTABLE
        self.system = platform.system()

    def resolve_executable(self) -> str:
        path = shutil.which(self.executable)
        if path is None:
            raise FileNotFoundError(f"spawn {self.executable} ENOENT: command not found in PATH")
        return path

    def launch(self, args: Sequence[str], env: Dict[str, str]) -> LaunchOutcome:
        """启动并等待子进程结束

        找不到可执行文件时抛出 FileNotFoundError，其它启动失败抛出 OSError。
        """
        command: List[str] = [self.resolve_executable(), *args]
        logger.debug("Launching %s", command[0])

        # Windows 上 .cmd/.bat 包装脚本需要通过 shell 启动
        if self.system == "Windows":
            process = subprocess.Popen(subprocess.list2cmdline(command), env=env, shell=True)
        else:
            process = subprocess.Popen(command, env=env)

        previous = self._install_forwarders(process)
        try:
            returncode = process.wait()
        finally:
            self._restore_handlers(previous)

        outcome = outcome_from_returncode(returncode)
        logger.debug("%s exited with %s", self.executable, outcome)
        return outcome

    def _install_forwarders(self, process: subprocess.Popen) -> Dict[int, object]:
        if threading.current_thread() is not threading.main_thread():
            return {}

        def forward(signum, frame):
            if process.poll() is None:
                logger.debug("Forwarding signal %s to child process", signum)
                process.send_signal(signum)

        previous = {}
        for name in FORWARDED_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            previous[signum] = signal.signal(signum, forward)
        return previous

    def _restore_handlers(self, previous: Dict[int, object]):
        for signum, handler in previous.items():
            if handler is not None:
                signal.signal(signum, handler)
