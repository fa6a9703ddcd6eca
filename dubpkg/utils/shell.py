"""外部命令执行工具：统一子进程调用

通过 CommandExecutor 协议抽象子进程执行，方便测试替换（注入假实现，
无需 patch subprocess）。
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol

from dubpkg.core.exceptions import ExecutionError

logger = logging.getLogger(__name__)


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议：抽象子进程调用"""

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        """执行命令并返回结果"""
        ...


# =========================================================================
# 默认实现: 本地执行器
# =========================================================================

class LocalExecutor:
    """本地命令执行器（默认实现）

    可执行文件不存在时不抛异常，而是返回 returncode=127 的结果，
    与 shell 的 "command not found" 语义一致。
    其他无法启动的情况返回 126；输出中的非法字节按替换字符解码。
    """

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        try:
            r = subprocess.run(
                cmd, capture_output=True, text=True,
                encoding="utf-8", errors="replace",
                cwd=cwd, env=env, check=False, timeout=timeout,
            )
        except FileNotFoundError as e:
            return CommandResult(returncode=127, stdout="", stderr=str(e))
        except OSError as e:
            return CommandResult(returncode=126, stdout="", stderr=str(e))
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout,
            stderr=r.stderr,
        )


# =========================================================================
# 全局默认执行器（可替换）
# =========================================================================

_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试或远程执行场景）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor


def run_cmd(
    cmd: list[str], *, cwd: str = ".",
    executor: CommandExecutor | None = None,
    label: str = "cmd",
) -> str:
    """执行命令，成功返回去除首尾空白的 stdout，失败抛 ExecutionError"""
    ex = executor or get_executor()
    r = ex.execute(cmd, cwd=cwd)
    if not r.success:
        raise ExecutionError(
            f"{label}失败 (rc={r.returncode}): {(r.stderr or r.stdout).strip()[:500]}"
        )
    return r.stdout.strip()
