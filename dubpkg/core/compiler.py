"""编译器能力抽象

核心模块只通过 Compiler 协议调用编译器相关逻辑:
  - extract_build_options: 将可识别的原始编译参数提升为结构化选项并从参数列表移除
  - get_target_file_name:  计算目标产物文件名

内置 dmd 风格实现，其他编译器通过 register_compiler 注册。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from dubpkg.core.build_settings import BuildOption, BuildSettings, TargetType
from dubpkg.core.exceptions import ValidationError
from dubpkg.core.platform import BuildPlatform

logger = logging.getLogger(__name__)


class Compiler(Protocol):
    """编译器协议"""

    name: str

    def extract_build_options(self, settings: BuildSettings) -> None:
        """从 dflags 中提取结构化选项（必须幂等）"""
        ...

    def get_target_file_name(self, settings: BuildSettings, platform: BuildPlatform) -> str:
        """返回目标产物文件名，无产物时返回空串"""
        ...


# 选项 -> 对应的原始参数组合（全部出现时才提升）
_DMD_OPTIONS: tuple[tuple[BuildOption, tuple[str, ...]], ...] = (
    (BuildOption.DEBUG_MODE, ("-debug",)),
    (BuildOption.RELEASE_MODE, ("-release",)),
    (BuildOption.COVERAGE, ("-cov",)),
    (BuildOption.DEBUG_INFO, ("-g",)),
    (BuildOption.DEBUG_INFO_C, ("-gc",)),
    (BuildOption.ALWAYS_STACK_FRAME, ("-gs",)),
    (BuildOption.STACK_STOMPING, ("-gx",)),
    (BuildOption.INLINE, ("-inline",)),
    (BuildOption.NO_BOUNDS_CHECK, ("-noboundscheck",)),
    (BuildOption.OPTIMIZE, ("-O",)),
    (BuildOption.PROFILE, ("-profile",)),
    (BuildOption.PROFILE_GC, ("-profile=gc",)),
    (BuildOption.UNITTESTS, ("-unittest",)),
    (BuildOption.VERBOSE, ("-v",)),
    (BuildOption.IGNORE_UNKNOWN_PRAGMAS, ("-ignore",)),
    (BuildOption.SYNTAX_ONLY, ("-o-",)),
    (BuildOption.WARNINGS, ("-wi",)),
    (BuildOption.WARNINGS_AS_ERRORS, ("-w",)),
    (BuildOption.IGNORE_DEPRECATIONS, ("-d",)),
    (BuildOption.DEPRECATION_WARNINGS, ("-dw",)),
    (BuildOption.DEPRECATION_ERRORS, ("-de",)),
    (BuildOption.PROPERTY, ("-property",)),
    (BuildOption.PIC, ("-fPIC",)),
    (BuildOption.DOCS, ("-Dddocs",)),
    (BuildOption.DDOX, ("-Xfdocs.json", "-Df__dummy.html")),
)

# 有通用替代写法的参数前缀 -> 建议
_SPECIAL_PREFIXES: tuple[tuple[str, str], ...] = (
    ("-version=", 'Use "versions" to specify version constants in a compiler independent way'),
    ("-debug=", 'Use "debugVersions" to specify version constants in a compiler independent way'),
    ("-I", 'Use "importPaths" to specify import paths in a compiler independent way'),
    ("-J", 'Use "stringImportPaths" to specify import paths in a compiler independent way'),
)


class DmdCompiler:
    """dmd 风格参数的编译器实现"""

    name = "dmd"

    def extract_build_options(self, settings: BuildSettings) -> None:
        for option, flags in _DMD_OPTIONS:
            if all(f in settings.dflags for f in flags):
                settings.remove_dflags(flags)
                settings.add_options([option])

        remaining: list[str] = []
        for flag in settings.dflags:
            if flag.startswith("-version="):
                settings.add_versions([flag[len("-version="):]])
            elif flag.startswith("-debug="):
                settings.add_debug_versions([flag[len("-debug="):]])
            elif flag.startswith("-I") and len(flag) > 2:
                settings.add_import_paths([flag[2:]])
            elif flag.startswith("-J") and len(flag) > 2:
                settings.add_string_import_paths([flag[2:]])
            else:
                remaining.append(flag)
        settings.dflags = remaining

    def get_target_file_name(self, settings: BuildSettings, platform: BuildPlatform) -> str:
        name = settings.target_name
        is_windows = "windows" in platform.platform
        is_osx = "osx" in platform.platform
        tt = settings.target_type

        if tt in (TargetType.NONE, TargetType.SOURCE_LIBRARY):
            return ""
        if tt == TargetType.AUTODETECT:
            raise ValidationError(f"目标类型未确定，无法计算产物文件名: {name}")
        if tt == TargetType.EXECUTABLE:
            return f"{name}.exe" if is_windows else name
        if tt in (TargetType.LIBRARY, TargetType.STATIC_LIBRARY):
            return f"{name}.lib" if is_windows else f"lib{name}.a"
        if tt == TargetType.DYNAMIC_LIBRARY:
            if is_windows:
                return f"{name}.dll"
            return f"lib{name}.dylib" if is_osx else f"lib{name}.so"
        # TargetType.OBJECT
        return f"{name}.obj" if is_windows else f"{name}.o"


def special_flag_warnings(dflags: list[str]) -> list[tuple[str, str]]:
    """找出有通用替代写法的原始编译参数，返回 (参数, 建议) 列表"""
    found: list[tuple[str, str]] = []
    for flag in dflags:
        option = next((o for o, flags in _DMD_OPTIONS if flags == (flag,)), None)
        if option is not None:
            found.append((flag, f'Use "buildOptions" with "{option.value}" instead'))
            continue
        for prefix, hint in _SPECIAL_PREFIXES:
            if flag.startswith(prefix) and len(flag) > len(prefix):
                found.append((flag, hint))
                break
    return found


# =========================================================================
# 编译器注册表
# =========================================================================

_compilers: dict[str, Callable[[], Compiler]] = {
    "dmd": DmdCompiler,
}


def register_compiler(name: str, factory: Callable[[], Compiler]) -> None:
    """注册自定义编译器实现"""
    _compilers[name] = factory


def find_compiler(name: str) -> Compiler | None:
    """按名称（或可执行文件名）查找编译器，未注册返回 None"""
    factory = _compilers.get(name)
    if factory is None:
        # 允许传入 /usr/bin/dmd 之类的可执行文件路径
        base = name.replace("\\", "/").rsplit("/", 1)[-1]
        base = base[:-4] if base.endswith(".exe") else base
        factory = _compilers.get(base)
    return factory() if factory is not None else None


def get_compiler(name: str) -> Compiler:
    """按名称获取编译器，未注册时抛 ValidationError"""
    compiler = find_compiler(name)
    if compiler is None:
        raise ValidationError(f"未知编译器: {name}（可用: {list(_compilers)}）")
    return compiler
