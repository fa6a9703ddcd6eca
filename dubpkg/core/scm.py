"""版本控制来源适配器

通过 ScmProvider 协议抽象版本控制查询，测试时可注入确定性的假实现，
无需真正调用 git。

所有查询失败（工具缺失、非零退出码、输出无法解析）都记录 debug 日志
并返回 None，不向上抛异常。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from dubpkg.core.exceptions import ExecutionError
from dubpkg.utils.shell import CommandExecutor, get_executor, run_cmd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DescribeResult:
    """describe 查询结果: 最近的 tag、距该 tag 的提交数、当前提交标识"""

    tag: str
    distance: int
    commit: str


class ScmProvider(Protocol):
    """版本控制查询协议"""

    def is_working_copy(self, path: Path) -> bool:
        """目录下是否存在可识别的版本控制元数据"""
        ...

    def describe(self, path: Path) -> DescribeResult | None:
        """查询最近的 tag；没有 tag 或查询失败返回 None"""
        ...

    def current_branch(self, path: Path) -> str | None:
        """查询当前分支名；分离头指针时返回 "HEAD"，失败返回 None"""
        ...

    def head_commit(self, path: Path) -> str:
        """不启动外部进程，快速读取当前 HEAD 提交标识；无法确定时返回空串"""
        ...


class GitScm:
    """基于 git 可执行文件的版本控制查询"""

    def __init__(self, executor: CommandExecutor | None = None) -> None:
        self._executor = executor

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    def is_working_copy(self, path: Path) -> bool:
        return (path / ".git").is_dir()

    def _exec(self, path: Path, *args: str) -> str | None:
        cmd = ["git", f"--git-dir={path / '.git'}", *args]
        try:
            return run_cmd(cmd, cwd=str(path), executor=self.executor, label=f"git {args[0]}")
        except ExecutionError as e:
            logger.debug("'%s' %s", " ".join(cmd), e)
            return None

    def describe(self, path: Path) -> DescribeResult | None:
        out = self._exec(path, "describe", "--long", "--tags")
        if not out:
            return None
        # 格式: <tag>-<distance>-g<hash>，tag 本身可能包含 "-"
        parts = out.split("-")
        if len(parts) < 3:
            logger.debug("无法解析 git describe 输出: %s", out)
            return None
        try:
            distance = int(parts[-2])
        except ValueError:
            logger.debug("无法解析 git describe 输出: %s", out)
            return None
        return DescribeResult(tag="-".join(parts[:-2]), distance=distance, commit=parts[-1])

    def current_branch(self, path: Path) -> str | None:
        return self._exec(path, "rev-parse", "--abbrev-ref", "HEAD") or None

    def head_commit(self, path: Path) -> str:
        git_dir = path / ".git"
        head_file = git_dir / "HEAD"
        try:
            head_ref = head_file.read_text(encoding="utf-8").strip()
        except (OSError, ValueError):
            return ""

        if not head_ref.startswith("ref: "):
            # 分离头指针: HEAD 中直接是提交哈希
            return head_ref

        ref = head_ref[len("ref: "):]
        try:
            return (git_dir / ref).read_text(encoding="utf-8").strip()
        except (OSError, ValueError):
            pass

        # 引用可能已被打包到 packed-refs
        try:
            lines = (git_dir / "packed-refs").read_text(encoding="utf-8").splitlines()
        except (OSError, ValueError):
            return ""
        for line in lines:
            sha, _, name = line.partition(" ")
            if name == ref:
                return sha
        return ""
