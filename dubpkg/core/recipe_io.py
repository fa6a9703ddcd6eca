"""包描述文件读写

职责:
- 在目录中按优先级查找包描述文件
- 将 JSON / YAML 对象解析为 PackageRecipe
- 将 PackageRecipe 序列化回字典（用于持久化）

平台相关的构建设置键带后缀，例如 "dflags-linux-dmd"、"sourcePaths-windows"。
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from dubpkg.core.build_settings import BuildOption, BuildRequirement, TargetType
from dubpkg.core.exceptions import ConfigError
from dubpkg.core.recipe import (
    BuildSettingsTemplate,
    ConfigurationInfo,
    Dependency,
    PackageRecipe,
    SubPackage,
)
from dubpkg.utils.file_io import load_json, load_yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecipeFile:
    """可识别的包描述文件名及其格式"""

    filename: str
    fmt: str  # "json" | "yaml"


# 按优先级从高到低排列
PACKAGE_RECIPE_FILES: tuple[RecipeFile, ...] = (
    RecipeFile("dub.json", "json"),
    RecipeFile("dub.yml", "yaml"),
    RecipeFile("package.json", "json"),
)


def recipe_filenames() -> list[str]:
    """所有可识别的包描述文件名（按优先级）"""
    return [f.filename for f in PACKAGE_RECIPE_FILES]


def default_recipe_filename() -> str:
    """持久化时使用的默认文件名"""
    return PACKAGE_RECIPE_FILES[0].filename


def find_package_file(directory: str | Path) -> Path | None:
    """在目录中查找包描述文件，找不到返回 None"""
    for f in PACKAGE_RECIPE_FILES:
        candidate = Path(directory) / f.filename
        if candidate.is_file():
            return candidate
    return None


def read_package_recipe(path: str | Path, parent_name: str = "") -> PackageRecipe:
    """读取并解析包描述文件，格式由文件名决定"""
    p = Path(path)
    fmt = next((f.fmt for f in PACKAGE_RECIPE_FILES if f.filename == p.name), "")
    if not fmt:
        fmt = "yaml" if p.suffix in (".yml", ".yaml") else "json"
    try:
        data = load_yaml(p) if fmt == "yaml" else load_json(p)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"包描述文件格式错误: {p}: {e}") from e
    return parse_recipe(data, parent_name)


# =========================================================================
# 字典 -> PackageRecipe
# =========================================================================

# 带平台后缀的列表型字段: 键名 -> 模板属性名
_LIST_FIELDS: dict[str, str] = {
    "dflags": "dflags",
    "lflags": "lflags",
    "libs": "libs",
    "sourceFiles": "source_files",
    "sourcePaths": "source_paths",
    "excludedSourceFiles": "excluded_source_files",
    "copyFiles": "copy_files",
    "versions": "versions",
    "debugVersions": "debug_versions",
    "importPaths": "import_paths",
    "stringImportPaths": "string_import_paths",
    "preGenerateCommands": "pre_generate_commands",
    "postGenerateCommands": "post_generate_commands",
    "preBuildCommands": "pre_build_commands",
    "postBuildCommands": "post_build_commands",
}

_SCALAR_FIELDS: dict[str, str] = {
    "targetName": "target_name",
    "targetPath": "target_path",
    "workingDirectory": "working_directory",
    "mainSourceFile": "main_source_file",
}

_META_FIELDS = ("name", "version", "description", "homepage", "copyright", "license")


def _str_list(key: str, value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"字段 {key} 必须是字符串列表")
    return list(value)


def _enum_list(key: str, value: Any, enum_cls: type) -> list:
    result = []
    for v in _str_list(key, value):
        try:
            result.append(enum_cls(v))
        except ValueError as e:
            raise ConfigError(f"字段 {key} 取值无效: {v}") from e
    return result


def _parse_dependency(name: str, value: Any) -> Dependency:
    if isinstance(value, str):
        return Dependency(version=value)
    if isinstance(value, dict):
        return Dependency(
            version=value.get("version", "" if value.get("path") else ">=0.0.0"),
            path=value.get("path", ""),
            optional=bool(value.get("optional", False)),
        )
    raise ConfigError(f"依赖 {name} 的声明格式无效")


def _parse_build_settings(
    data: dict[str, Any], base_name: str, known_extra: tuple[str, ...] = (),
) -> BuildSettingsTemplate:
    bs = BuildSettingsTemplate()
    for key, value in data.items():
        if key in known_extra:
            continue
        field_name, _, suffix = key.partition("-")
        suffix = f"-{suffix}" if suffix else ""

        if field_name in _LIST_FIELDS:
            getattr(bs, _LIST_FIELDS[field_name]).setdefault(suffix, []).extend(
                _str_list(key, value)
            )
        elif field_name == "buildRequirements":
            bs.build_requirements.setdefault(suffix, []).extend(
                _enum_list(key, value, BuildRequirement)
            )
        elif field_name == "buildOptions":
            bs.build_options.setdefault(suffix, []).extend(
                _enum_list(key, value, BuildOption)
            )
        elif key in _SCALAR_FIELDS:
            setattr(bs, _SCALAR_FIELDS[key], str(value))
        elif key == "targetType":
            try:
                bs.target_type = TargetType(value)
            except ValueError as e:
                raise ConfigError(f"targetType 取值无效: {value}") from e
        elif key == "dependencies":
            for dep_name, spec in (value or {}).items():
                # ":sub" 形式引用同一基础包下的子包
                if dep_name.startswith(":"):
                    dep_name = base_name + dep_name
                bs.dependencies[dep_name] = _parse_dependency(dep_name, spec)
        elif key == "subConfigurations":
            bs.sub_configurations.update({str(k): str(v) for k, v in (value or {}).items()})
        else:
            logger.warning("忽略未知的构建设置字段: %s", key)
    return bs


def parse_recipe(data: dict[str, Any], parent_name: str = "") -> PackageRecipe:
    """将 JSON / YAML 对象解析为 PackageRecipe

    parent_name 为父包的限定名；子包的 ":sub" 依赖据此展开为 "base:sub"。
    """
    if not isinstance(data, dict):
        raise ConfigError("包描述必须是对象")

    recipe = PackageRecipe()
    for key in _META_FIELDS:
        if key in data:
            setattr(recipe, key, str(data[key]))
    recipe.authors = _str_list("authors", data.get("authors", []))

    full_name = f"{parent_name}:{recipe.name}" if parent_name else recipe.name
    base_name = full_name.split(":")[0]

    skip = (*_META_FIELDS, "authors", "configurations", "buildTypes", "subPackages")
    recipe.build_settings = _parse_build_settings(data, base_name, skip)

    for conf in data.get("configurations") or []:
        if not isinstance(conf, dict) or not conf.get("name"):
            raise ConfigError(f"包 {full_name} 的配置缺少 name 字段")
        recipe.configurations.append(ConfigurationInfo(
            name=str(conf["name"]),
            build_settings=_parse_build_settings(conf, base_name, ("name", "platforms")),
            platforms=_str_list("platforms", conf.get("platforms", [])),
        ))

    for bt_name, bt in (data.get("buildTypes") or {}).items():
        recipe.build_types[str(bt_name)] = _parse_build_settings(bt or {}, base_name)

    for sp in data.get("subPackages") or []:
        if isinstance(sp, str):
            recipe.sub_packages.append(SubPackage(path=sp))
        elif isinstance(sp, dict):
            recipe.sub_packages.append(SubPackage(recipe=parse_recipe(sp, full_name)))
        else:
            raise ConfigError(f"包 {full_name} 的子包声明格式无效")

    return recipe


# =========================================================================
# PackageRecipe -> 字典
# =========================================================================

def _dependency_to_json(dep: Dependency) -> Any:
    if not dep.path and not dep.optional:
        return dep.version
    ret: dict[str, Any] = {}
    if dep.version:
        ret["version"] = dep.version
    if dep.path:
        ret["path"] = dep.path
    if dep.optional:
        ret["optional"] = True
    return ret


def _build_settings_to_dict(bs: BuildSettingsTemplate) -> dict[str, Any]:
    ret: dict[str, Any] = {}
    if bs.dependencies:
        ret["dependencies"] = {
            k: _dependency_to_json(v) for k, v in bs.dependencies.items()
        }
    if bs.target_type != TargetType.AUTODETECT:
        ret["targetType"] = bs.target_type.value
    for key, attr in _SCALAR_FIELDS.items():
        value = getattr(bs, attr)
        if value:
            ret[key] = value
    if bs.sub_configurations:
        ret["subConfigurations"] = dict(bs.sub_configurations)
    for key, attr in _LIST_FIELDS.items():
        for suffix, values in getattr(bs, attr).items():
            ret[key + suffix] = list(values)
    for suffix, reqs in bs.build_requirements.items():
        ret["buildRequirements" + suffix] = [r.value for r in reqs]
    for suffix, opts in bs.build_options.items():
        ret["buildOptions" + suffix] = [o.value for o in opts]
    return ret


def recipe_to_dict(recipe: PackageRecipe) -> dict[str, Any]:
    """将 PackageRecipe 序列化为 JSON 对象（仅输出非空字段）"""
    ret: dict[str, Any] = {}
    for key in _META_FIELDS:
        value = getattr(recipe, key)
        if value:
            ret[key] = value
    if recipe.authors:
        ret["authors"] = list(recipe.authors)

    ret.update(_build_settings_to_dict(recipe.build_settings))

    if recipe.configurations:
        confs = []
        for c in recipe.configurations:
            entry: dict[str, Any] = {"name": c.name}
            if c.platforms:
                entry["platforms"] = list(c.platforms)
            entry.update(_build_settings_to_dict(c.build_settings))
            confs.append(entry)
        ret["configurations"] = confs

    if recipe.build_types:
        ret["buildTypes"] = {
            k: _build_settings_to_dict(v) for k, v in recipe.build_types.items()
        }

    if recipe.sub_packages:
        ret["subPackages"] = [
            sp.path if sp.path else recipe_to_dict(sp.recipe or PackageRecipe())
            for sp in recipe.sub_packages
        ]
    return ret
