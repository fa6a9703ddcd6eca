"""包描述导出（供 IDE / 构建工具使用）

将包实体 + 有效构建设置投影为扁平、可序列化的记录，
并对所有出现过的文件按用途分类:
  - 出现在指定配置的有效设置中:   source / import / stringImport
  - 只出现在全量汇总设置中:       unusedSource / unusedImport / unusedStringImport
同一路径只会有一个角色，具体角色总是覆盖 unused 角色。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from dubpkg.core.build_settings import (
    BuildOption,
    BuildRequirement,
    TargetType,
    ordered_options,
    ordered_requirements,
)
from dubpkg.core.compiler import Compiler
from dubpkg.core.platform import BuildPlatform

if TYPE_CHECKING:
    from dubpkg.core.package import Package


class SourceFileRole(str, Enum):
    """文件用途"""
    UNUSED_STRING_IMPORT = "unusedStringImport"
    UNUSED_IMPORT = "unusedImport"
    UNUSED_SOURCE = "unusedSource"
    STRING_IMPORT = "stringImport"
    IMPORT = "import"
    SOURCE = "source"


@dataclass
class SourceFileDescription:
    """单个文件及其用途"""

    path: str
    role: SourceFileRole


@dataclass
class PackageDescription:
    """包的扁平描述"""

    name: str = ""
    version: str = ""
    path: str = ""
    configuration: str = ""
    description: str = ""
    homepage: str = ""
    authors: list[str] = field(default_factory=list)
    copyright: str = ""
    license: str = ""
    dependencies: list[str] = field(default_factory=list)
    target_type: TargetType = TargetType.AUTODETECT
    target_path: str = ""
    target_name: str = ""
    target_file_name: str = ""
    working_directory: str = ""
    main_source_file: str = ""
    dflags: list[str] = field(default_factory=list)
    lflags: list[str] = field(default_factory=list)
    libs: list[str] = field(default_factory=list)
    copy_files: list[str] = field(default_factory=list)
    versions: list[str] = field(default_factory=list)
    debug_versions: list[str] = field(default_factory=list)
    import_paths: list[str] = field(default_factory=list)
    string_import_paths: list[str] = field(default_factory=list)
    pre_generate_commands: list[str] = field(default_factory=list)
    post_generate_commands: list[str] = field(default_factory=list)
    pre_build_commands: list[str] = field(default_factory=list)
    post_build_commands: list[str] = field(default_factory=list)
    build_requirements: list[BuildRequirement] = field(default_factory=list)
    options: list[BuildOption] = field(default_factory=list)
    files: list[SourceFileDescription] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """导出为 JSON 对象（键名使用 camelCase）"""
        return {
            "name": self.name,
            "version": self.version,
            "path": self.path,
            "configuration": self.configuration,
            "description": self.description,
            "homepage": self.homepage,
            "authors": list(self.authors),
            "copyright": self.copyright,
            "license": self.license,
            "dependencies": list(self.dependencies),
            "targetType": self.target_type.value,
            "targetPath": self.target_path,
            "targetName": self.target_name,
            "targetFileName": self.target_file_name,
            "workingDirectory": self.working_directory,
            "mainSourceFile": self.main_source_file,
            "dflags": list(self.dflags),
            "lflags": list(self.lflags),
            "libs": list(self.libs),
            "copyFiles": list(self.copy_files),
            "versions": list(self.versions),
            "debugVersions": list(self.debug_versions),
            "importPaths": list(self.import_paths),
            "stringImportPaths": list(self.string_import_paths),
            "preGenerateCommands": list(self.pre_generate_commands),
            "postGenerateCommands": list(self.post_generate_commands),
            "preBuildCommands": list(self.pre_build_commands),
            "postBuildCommands": list(self.post_build_commands),
            "buildRequirements": [r.value for r in self.build_requirements],
            "options": [o.value for o in self.options],
            "files": [{"path": f.path, "role": f.role.value} for f in self.files],
        }


def describe_package(
    pkg: Package,
    platform: BuildPlatform,
    compiler: Compiler | None,
    config: str = "",
) -> PackageDescription:
    """生成包描述

    compiler 为 None 或目标类型为 none 时不计算产物文件名。
    """
    bs = pkg.get_build_settings(platform, config)
    allbs = pkg.get_combined_build_settings()

    ret = PackageDescription(
        name=pkg.name,
        version=str(pkg.version),
        path=pkg.path_string,
        configuration=config,
        description=pkg.recipe.description,
        homepage=pkg.recipe.homepage,
        authors=list(pkg.recipe.authors),
        copyright=pkg.recipe.copyright,
        license=pkg.recipe.license,
        dependencies=list(pkg.get_dependencies(config)),
        target_type=bs.target_type,
        target_path=bs.target_path,
        target_name=bs.target_name,
        working_directory=bs.working_directory,
        main_source_file=bs.main_source_file,
        dflags=list(bs.dflags),
        lflags=list(bs.lflags),
        libs=list(bs.libs),
        copy_files=list(bs.copy_files),
        versions=list(bs.versions),
        debug_versions=list(bs.debug_versions),
        import_paths=list(bs.import_paths),
        string_import_paths=list(bs.string_import_paths),
        pre_generate_commands=list(bs.pre_generate_commands),
        post_generate_commands=list(bs.post_generate_commands),
        pre_build_commands=list(bs.pre_build_commands),
        post_build_commands=list(bs.post_build_commands),
        build_requirements=ordered_requirements(bs.requirements),
        options=ordered_options(bs.options),
    )
    # 未选配置时目标类型可能仍是 autodetect，此时不计算产物文件名
    if bs.target_type not in (TargetType.NONE, TargetType.AUTODETECT) and compiler is not None:
        ret.target_file_name = compiler.get_target_file_name(bs, platform)

    # 后写入者覆盖先写入者: unused 角色先写，具体角色后写
    roles: dict[str, SourceFileRole] = {}
    for f in allbs.string_import_files:
        roles[f] = SourceFileRole.UNUSED_STRING_IMPORT
    for f in allbs.import_files:
        roles[f] = SourceFileRole.UNUSED_IMPORT
    for f in allbs.source_files:
        roles[f] = SourceFileRole.UNUSED_SOURCE
    for f in bs.string_import_files:
        roles[f] = SourceFileRole.STRING_IMPORT
    for f in bs.import_files:
        roles[f] = SourceFileRole.IMPORT
    for f in bs.source_files:
        roles[f] = SourceFileRole.SOURCE

    ret.files = [SourceFileDescription(path=p, role=roles[p]) for p in sorted(roles)]
    return ret
