"""命令执行器与 run_cmd 单元测试"""

from __future__ import annotations

import sys

import pytest

from dubpkg.core.exceptions import ExecutionError
from dubpkg.utils.shell import (
    CommandResult,
    LocalExecutor,
    get_executor,
    run_cmd,
    set_executor,
)


class RecordingExecutor:
    def __init__(self, result: CommandResult) -> None:
        self.result = result
        self.calls: list[tuple[list[str], str]] = []

    def execute(self, cmd, *, cwd=".", env=None, timeout=None) -> CommandResult:
        self.calls.append((cmd, cwd))
        return self.result


class TestLocalExecutor:
    def test_success(self, tmp_path) -> None:
        r = LocalExecutor().execute([sys.executable, "-c", "print('hello')"], cwd=str(tmp_path))
        assert r.success
        assert r.stdout.strip() == "hello"

    def test_missing_binary_returns_127(self, tmp_path) -> None:
        r = LocalExecutor().execute(["definitely-not-a-real-binary-xyz"], cwd=str(tmp_path))
        assert r.returncode == 127
        assert not r.success

    def test_undecodable_output_replaced(self, tmp_path) -> None:
        code = "import sys; sys.stdout.buffer.write(b'v1.0\\xff-tag')"
        r = LocalExecutor().execute([sys.executable, "-c", code], cwd=str(tmp_path))
        assert r.success
        assert r.stdout == "v1.0\ufffd-tag"

    def test_unlaunchable_returns_126(self, tmp_path) -> None:
        r = LocalExecutor().execute([str(tmp_path)], cwd=str(tmp_path))
        assert r.returncode == 126
        assert not r.success


class TestRunCmd:
    def test_returns_stripped_stdout(self) -> None:
        ex = RecordingExecutor(CommandResult(0, "  out\n", ""))
        assert run_cmd(["x"], cwd="/w", executor=ex) == "out"
        assert ex.calls == [(["x"], "/w")]

    def test_failure_raises(self) -> None:
        ex = RecordingExecutor(CommandResult(1, "", "boom"))
        with pytest.raises(ExecutionError, match="cmd失败"):
            run_cmd(["x"], executor=ex)

    def test_custom_label_in_error(self) -> None:
        ex = RecordingExecutor(CommandResult(2, "", "boom"))
        with pytest.raises(ExecutionError, match="git describe失败"):
            run_cmd(["x"], executor=ex, label="git describe")

    def test_default_executor_replaceable(self) -> None:
        original = get_executor()
        ex = RecordingExecutor(CommandResult(0, "ok", ""))
        try:
            set_executor(ex)
            assert run_cmd(["x"]) == "ok"
        finally:
            set_executor(original)
