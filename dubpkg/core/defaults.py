"""按目录约定补全默认设置与默认配置

输入原始 recipe 与包目录，输出补全后的有效 recipe（原始 recipe 不被修改）:
  1. 未声明全平台字符串导入路径且存在 views/ 时加入
  2. 未声明全平台源码/导入路径时，取 source/ 或 src/ 中第一个存在的目录
  3. 在源码路径中探测入口文件（app.d / main.d / <包名>/main.d / <包名>/app.d）
  4. recipe 未声明任何配置时生成 application / library 默认配置
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

from dubpkg.core.build_settings import TargetType
from dubpkg.core.recipe import BuildSettingsTemplate, ConfigurationInfo, PackageRecipe

logger = logging.getLogger(__name__)

DEFAULT_STRING_IMPORT_DIRS = ("views",)
# 按优先级排列，只取第一个存在的目录
DEFAULT_SOURCE_DIRS = ("source/", "src/")

APPLICATION_CONFIG = "application"
LIBRARY_CONFIG = "library"


def main_file_candidates(package_name: str) -> list[str]:
    """入口文件候选（按探测顺序）"""
    name = package_name or "unknown"
    return ["app.d", "main.d", f"{name}/main.d", f"{name}/app.d"]


def add_default_paths(bs: BuildSettingsTemplate, path: Path) -> None:
    """按目录约定补全全平台的源码/导入/字符串导入路径"""
    if "" not in bs.string_import_paths:
        for d in DEFAULT_STRING_IMPORT_DIRS:
            if (path / d).exists():
                bs.string_import_paths.setdefault("", []).append(d)

    has_sp = "" in bs.source_paths
    has_ip = "" in bs.import_paths
    if has_sp and has_ip:
        return
    for d in DEFAULT_SOURCE_DIRS:
        if (path / d).exists():
            if not has_sp:
                bs.source_paths.setdefault("", []).append(d)
            if not has_ip:
                bs.import_paths.setdefault("", []).append(d)
            break


def find_main_file(package_name: str, bs: BuildSettingsTemplate, path: Path) -> str:
    """在全平台源码路径中探测入口文件，返回相对包目录的路径，找不到返回空串

    以找到的第一个为准。
    """
    candidates = main_file_candidates(package_name)
    for sp in bs.source_paths.get("", []):
        if not (path / sp).exists():
            continue
        for candidate in candidates:
            if (path / sp / candidate).exists():
                return (PurePosixPath(sp) / candidate).as_posix()
    return ""


def default_configurations(
    bs: BuildSettingsTemplate, app_main_file: str,
) -> list[ConfigurationInfo]:
    """根据根级目标类型生成默认配置

    - executable:  单个 application 配置
    - autodetect:  library（排除入口文件）+ 探测到入口文件时的 application
    - 其他库类型:   单个 library 配置，保留原目标类型
    - none:        不生成
    """
    if bs.target_type == TargetType.EXECUTABLE:
        app = BuildSettingsTemplate(target_type=TargetType.EXECUTABLE)
        if not bs.main_source_file:
            app.main_source_file = app_main_file
        return [ConfigurationInfo(APPLICATION_CONFIG, app)]

    if bs.target_type == TargetType.NONE:
        return []

    configs: list[ConfigurationInfo] = []
    lib = BuildSettingsTemplate(target_type=bs.target_type)
    if bs.target_type == TargetType.AUTODETECT:
        lib.target_type = TargetType.LIBRARY
        if app_main_file:
            lib.excluded_source_files[""] = [app_main_file]
            app = BuildSettingsTemplate(
                target_type=TargetType.EXECUTABLE, main_source_file=app_main_file,
            )
            configs.append(ConfigurationInfo(APPLICATION_CONFIG, app))
    configs.append(ConfigurationInfo(LIBRARY_CONFIG, lib))
    return configs


def synthesize_defaults(raw: PackageRecipe, path: Path | None) -> PackageRecipe:
    """返回补全默认值后的 recipe 副本

    path 为 None（非本地包）时不做目录探测，只生成默认配置。
    """
    recipe = raw.clone()
    bs = recipe.build_settings

    app_main_file = ""
    if path is not None:
        add_default_paths(bs, path)
        app_main_file = find_main_file(recipe.name, bs, path)
        if app_main_file:
            logger.debug("探测到入口文件: %s", app_main_file)

    if not recipe.configurations:
        recipe.configurations.extend(default_configurations(bs, app_main_file))
    return recipe
