"""包描述 (recipe) 数据模型

与语法无关的内存表示: 根级构建设置 + 命名配置 + 构建类型覆盖 + 子包声明。
仅包含数据和简单访问器，合并逻辑见 settings_resolver。

数据类:
- Dependency:             依赖约束
- PackageDependency:      (包名, 依赖约束) 对
- BuildSettingsTemplate:  带平台后缀、尚未展平的构建声明
- ConfigurationInfo:      命名构建配置
- SubPackage:             子包声明（内联 recipe 或路径引用）
- PackageRecipe:          完整包描述
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from dubpkg.core.build_settings import BuildOption, BuildRequirement, TargetType
from dubpkg.core.platform import BuildPlatform

# 平台后缀 -> 值列表；空键 "" 表示所有平台
PlatformMap = dict[str, list[str]]


@dataclass
class Dependency:
    """依赖约束: 版本范围、本地路径、是否可选"""

    version: str = ">=0.0.0"
    path: str = ""
    optional: bool = False

    @property
    def is_path_based(self) -> bool:
        return bool(self.path)


@dataclass
class PackageDependency:
    """包名 + 依赖约束"""

    name: str
    spec: Dependency


@dataclass
class BuildSettingsTemplate:
    """带平台后缀的构建声明模板"""

    # 标量字段: 后声明者覆盖先声明者；AUTODETECT / 空串表示未设置
    target_type: TargetType = TargetType.AUTODETECT
    target_name: str = ""
    target_path: str = ""
    working_directory: str = ""
    main_source_file: str = ""

    dependencies: dict[str, Dependency] = field(default_factory=dict)
    # 依赖名 -> 选用的依赖配置名
    sub_configurations: dict[str, str] = field(default_factory=dict)

    dflags: PlatformMap = field(default_factory=dict)
    lflags: PlatformMap = field(default_factory=dict)
    libs: PlatformMap = field(default_factory=dict)
    source_files: PlatformMap = field(default_factory=dict)
    source_paths: PlatformMap = field(default_factory=dict)
    excluded_source_files: PlatformMap = field(default_factory=dict)
    copy_files: PlatformMap = field(default_factory=dict)
    versions: PlatformMap = field(default_factory=dict)
    debug_versions: PlatformMap = field(default_factory=dict)
    import_paths: PlatformMap = field(default_factory=dict)
    string_import_paths: PlatformMap = field(default_factory=dict)
    pre_generate_commands: PlatformMap = field(default_factory=dict)
    post_generate_commands: PlatformMap = field(default_factory=dict)
    pre_build_commands: PlatformMap = field(default_factory=dict)
    post_build_commands: PlatformMap = field(default_factory=dict)
    build_requirements: dict[str, list[BuildRequirement]] = field(default_factory=dict)
    build_options: dict[str, list[BuildOption]] = field(default_factory=dict)


@dataclass
class ConfigurationInfo:
    """命名构建配置（如 library / application）"""

    name: str
    build_settings: BuildSettingsTemplate = field(default_factory=BuildSettingsTemplate)
    platforms: list[str] = field(default_factory=list)

    def matches_platform(self, platform: BuildPlatform) -> bool:
        """未限定平台的配置适用于所有平台"""
        if not self.platforms:
            return True
        return any(platform.matches_specification("-" + p) for p in self.platforms)


@dataclass
class SubPackage:
    """子包声明: path 非空时为路径引用，否则为内联 recipe"""

    path: str = ""
    recipe: PackageRecipe | None = None


@dataclass
class PackageRecipe:
    """完整包描述

    配置名按约定唯一，但类型上不强制；重复只产生 lint 警告，
    按名查找时总是取第一个匹配项。
    """

    name: str = ""
    version: str = ""
    description: str = ""
    homepage: str = ""
    authors: list[str] = field(default_factory=list)
    copyright: str = ""
    license: str = ""
    build_settings: BuildSettingsTemplate = field(default_factory=BuildSettingsTemplate)
    configurations: list[ConfigurationInfo] = field(default_factory=list)
    build_types: dict[str, BuildSettingsTemplate] = field(default_factory=dict)
    sub_packages: list[SubPackage] = field(default_factory=list)

    def clone(self) -> PackageRecipe:
        return copy.deepcopy(self)

    def find_configuration(self, name: str) -> ConfigurationInfo | None:
        """按名查找配置，重复时返回第一个"""
        for conf in self.configurations:
            if conf.name == name:
                return conf
        return None
