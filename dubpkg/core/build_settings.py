"""构建设置数据模型

- TargetType:        目标类型
- BuildOption:       构建选项（结构化的编译器开关）
- BuildRequirement:  构建要求（对编译器开关的约束）
- BuildSettings:     展平后的有效构建设置（已按平台解析，无平台后缀）

选项/要求使用枚举集合表示；枚举声明顺序即导出顺序（等价于按位从低到高）。
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath


class TargetType(str, Enum):
    """构建目标类型"""
    AUTODETECT = "autodetect"
    NONE = "none"
    EXECUTABLE = "executable"
    LIBRARY = "library"
    SOURCE_LIBRARY = "sourceLibrary"
    DYNAMIC_LIBRARY = "dynamicLibrary"
    STATIC_LIBRARY = "staticLibrary"
    OBJECT = "object"


class BuildOption(str, Enum):
    """构建选项，声明顺序与原始位序一致"""
    DEBUG_MODE = "debugMode"
    RELEASE_MODE = "releaseMode"
    COVERAGE = "coverage"
    DEBUG_INFO = "debugInfo"
    DEBUG_INFO_C = "debugInfoC"
    ALWAYS_STACK_FRAME = "alwaysStackFrame"
    STACK_STOMPING = "stackStomping"
    INLINE = "inline"
    NO_BOUNDS_CHECK = "noBoundsCheck"
    OPTIMIZE = "optimize"
    PROFILE = "profile"
    UNITTESTS = "unittests"
    VERBOSE = "verbose"
    IGNORE_UNKNOWN_PRAGMAS = "ignoreUnknownPragmas"
    SYNTAX_ONLY = "syntaxOnly"
    WARNINGS = "warnings"
    WARNINGS_AS_ERRORS = "warningsAsErrors"
    IGNORE_DEPRECATIONS = "ignoreDeprecations"
    DEPRECATION_WARNINGS = "deprecationWarnings"
    DEPRECATION_ERRORS = "deprecationErrors"
    PROPERTY = "property"
    PROFILE_GC = "profileGC"
    PIC = "pic"
    # 内部使用: 文档生成
    DOCS = "_docs"
    DDOX = "_ddox"


class BuildRequirement(str, Enum):
    """构建要求，声明顺序与原始位序一致"""
    ALLOW_WARNINGS = "allowWarnings"
    SILENCE_WARNINGS = "silenceWarnings"
    DISALLOW_DEPRECATIONS = "disallowDeprecations"
    SILENCE_DEPRECATIONS = "silenceDeprecations"
    DISALLOW_INLINING = "disallowInlining"
    DISALLOW_OPTIMIZATION = "disallowOptimization"
    REQUIRE_BOUNDS_CHECK = "requireBoundsCheck"
    REQUIRE_CONTRACTS = "requireContracts"
    RELAX_PROPERTIES = "relaxProperties"
    NO_DEFAULT_FLAGS = "noDefaultFlags"


_OPTION_ORDER = {o: i for i, o in enumerate(BuildOption)}
_REQUIREMENT_ORDER = {r: i for i, r in enumerate(BuildRequirement)}


def ordered_options(options: Iterable[BuildOption]) -> list[BuildOption]:
    """按位序（从低到高）排列构建选项"""
    return sorted(set(options), key=_OPTION_ORDER.__getitem__)


def ordered_requirements(reqs: Iterable[BuildRequirement]) -> list[BuildRequirement]:
    """按位序（从低到高）排列构建要求"""
    return sorted(set(reqs), key=_REQUIREMENT_ORDER.__getitem__)


def normalize_path(p: str) -> str:
    """统一为 POSIX 形式的相对路径字符串，用于路径比较和输出"""
    s = PurePosixPath(p.replace("\\", "/")).as_posix()
    return s[2:] if s.startswith("./") else s


def _add_unique(dst: list[str], values: Iterable[str]) -> None:
    for v in values:
        if v not in dst:
            dst.append(v)


@dataclass
class BuildSettings:
    """展平后的有效构建设置

    列表型字段按语义分两类:
      - 去重追加: 文件、路径、库、版本标识
      - 原样追加: 编译/链接参数与命令（顺序与重复都有意义）
    """

    target_type: TargetType = TargetType.AUTODETECT
    target_path: str = ""
    target_name: str = ""
    working_directory: str = ""
    main_source_file: str = ""
    dflags: list[str] = field(default_factory=list)
    lflags: list[str] = field(default_factory=list)
    libs: list[str] = field(default_factory=list)
    source_files: list[str] = field(default_factory=list)
    copy_files: list[str] = field(default_factory=list)
    versions: list[str] = field(default_factory=list)
    debug_versions: list[str] = field(default_factory=list)
    import_paths: list[str] = field(default_factory=list)
    string_import_paths: list[str] = field(default_factory=list)
    import_files: list[str] = field(default_factory=list)
    string_import_files: list[str] = field(default_factory=list)
    pre_generate_commands: list[str] = field(default_factory=list)
    post_generate_commands: list[str] = field(default_factory=list)
    pre_build_commands: list[str] = field(default_factory=list)
    post_build_commands: list[str] = field(default_factory=list)
    requirements: set[BuildRequirement] = field(default_factory=set)
    options: set[BuildOption] = field(default_factory=set)

    # ------------------------------------------------------------------
    # 原样追加
    # ------------------------------------------------------------------

    def add_dflags(self, values: Iterable[str]) -> None:
        self.dflags.extend(values)

    def remove_dflags(self, values: Iterable[str]) -> None:
        drop = set(values)
        self.dflags = [f for f in self.dflags if f not in drop]

    def add_lflags(self, values: Iterable[str]) -> None:
        self.lflags.extend(values)

    def add_pre_generate_commands(self, values: Iterable[str]) -> None:
        self.pre_generate_commands.extend(values)

    def add_post_generate_commands(self, values: Iterable[str]) -> None:
        self.post_generate_commands.extend(values)

    def add_pre_build_commands(self, values: Iterable[str]) -> None:
        self.pre_build_commands.extend(values)

    def add_post_build_commands(self, values: Iterable[str]) -> None:
        self.post_build_commands.extend(values)

    # ------------------------------------------------------------------
    # 去重追加
    # ------------------------------------------------------------------

    def add_libs(self, values: Iterable[str]) -> None:
        _add_unique(self.libs, values)

    def add_source_files(self, values: Iterable[str]) -> None:
        _add_unique(self.source_files, (normalize_path(v) for v in values))

    def remove_source_files(self, values: Iterable[str]) -> None:
        drop = {normalize_path(v) for v in values}
        self.source_files = [f for f in self.source_files if f not in drop]

    def add_copy_files(self, values: Iterable[str]) -> None:
        _add_unique(self.copy_files, values)

    def add_versions(self, values: Iterable[str]) -> None:
        _add_unique(self.versions, values)

    def add_debug_versions(self, values: Iterable[str]) -> None:
        _add_unique(self.debug_versions, values)

    def add_import_paths(self, values: Iterable[str]) -> None:
        _add_unique(self.import_paths, values)

    def add_string_import_paths(self, values: Iterable[str]) -> None:
        _add_unique(self.string_import_paths, values)

    def add_import_files(self, values: Iterable[str]) -> None:
        _add_unique(self.import_files, (normalize_path(v) for v in values))

    def add_string_import_files(self, values: Iterable[str]) -> None:
        _add_unique(self.string_import_files, (normalize_path(v) for v in values))

    def add_requirements(self, values: Iterable[BuildRequirement]) -> None:
        self.requirements.update(values)

    def add_options(self, values: Iterable[BuildOption]) -> None:
        self.options.update(values)

    def to_dict(self) -> dict:
        """导出为可 JSON 序列化的字典（选项/要求按位序展开）"""
        return {
            "targetType": self.target_type.value,
            "targetPath": self.target_path,
            "targetName": self.target_name,
            "workingDirectory": self.working_directory,
            "mainSourceFile": self.main_source_file,
            "dflags": list(self.dflags),
            "lflags": list(self.lflags),
            "libs": list(self.libs),
            "sourceFiles": list(self.source_files),
            "copyFiles": list(self.copy_files),
            "versions": list(self.versions),
            "debugVersions": list(self.debug_versions),
            "importPaths": list(self.import_paths),
            "stringImportPaths": list(self.string_import_paths),
            "importFiles": list(self.import_files),
            "stringImportFiles": list(self.string_import_files),
            "preGenerateCommands": list(self.pre_generate_commands),
            "postGenerateCommands": list(self.post_generate_commands),
            "preBuildCommands": list(self.pre_build_commands),
            "postBuildCommands": list(self.post_build_commands),
            "buildRequirements": [r.value for r in ordered_requirements(self.requirements)],
            "options": [o.value for o in ordered_options(self.options)],
        }
