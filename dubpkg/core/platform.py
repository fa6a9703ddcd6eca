"""构建平台描述与平台后缀匹配

包描述中的列表型设置以平台后缀为键，例如:
    ""                    所有平台
    "-windows"            仅 Windows
    "-linux-x86_64"       Linux + x86_64
    "-posix-dmd"          POSIX 平台 + dmd 编译器

后缀各段顺序固定为 操作系统 / 架构 / 编译器，每段均可省略，编译器必须位于最后。
"""

from __future__ import annotations

import platform as _host
import sys
from dataclasses import dataclass

from dubpkg.core.exceptions import ValidationError


@dataclass(frozen=True)
class BuildPlatform:
    """编译器身份 + 目标平台描述

    platform / architecture 为名称列表（如 ["linux", "posix"]），
    便于同时匹配具体系统名和系统族名。
    """

    platform: tuple[str, ...] = ()
    architecture: tuple[str, ...] = ()
    compiler: str = ""
    compiler_binary: str = ""
    frontend_version: int = 0
    is_any: bool = False

    @classmethod
    def any(cls) -> BuildPlatform:
        """匹配所有平台后缀的特殊平台（用于 IDE 汇总视图，不用于实际构建）"""
        return cls(frontend_version=-1, is_any=True)

    @classmethod
    def host(cls, compiler: str = "dmd", compiler_binary: str = "") -> BuildPlatform:
        """根据当前运行环境推断平台"""
        return cls(
            platform=_host_platform_names(),
            architecture=_host_architecture_names(),
            compiler=compiler,
            compiler_binary=compiler_binary or compiler,
        )

    def matches_specification(self, specification: str) -> bool:
        """判断平台后缀是否适用于当前平台

        空后缀总是匹配；any 平台匹配任意后缀。
        """
        if not specification:
            return True
        if self.is_any:
            return True

        parts = specification.split("-")
        if parts[0] != "":
            raise ValidationError(f"平台后缀必须以 '-' 开头: \"{specification}\"")
        parts = parts[1:]
        if not parts or not all(parts):
            raise ValidationError(f"平台后缀不能为空: \"{specification}\"")

        idx = 0
        if parts[idx] in self.platform:
            idx += 1
            if idx == len(parts):
                return True
        if parts[idx] in self.architecture:
            idx += 1
            if idx == len(parts):
                return True
        if parts[idx] == self.compiler:
            if idx + 1 != len(parts):
                raise ValidationError(
                    f"平台后缀无效，编译器必须位于最后: \"{specification}\""
                )
            return True
        return False

    def to_dict(self) -> dict:
        return {
            "platform": list(self.platform),
            "architecture": list(self.architecture),
            "compiler": self.compiler,
            "compilerBinary": self.compiler_binary,
            "frontendVersion": self.frontend_version,
        }


def _host_platform_names() -> tuple[str, ...]:
    if sys.platform == "win32":
        return ("windows",)
    if sys.platform == "darwin":
        return ("osx", "posix")
    if sys.platform.startswith("linux"):
        return ("linux", "posix")
    if sys.platform.startswith("freebsd"):
        return ("freebsd", "posix")
    return (sys.platform, "posix")


def _host_architecture_names() -> tuple[str, ...]:
    machine = _host.machine().lower()
    aliases = {
        "amd64": "x86_64",
        "x64": "x86_64",
        "i386": "x86",
        "i686": "x86",
        "arm64": "aarch64",
    }
    return (aliases.get(machine, machine),) if machine else ()
