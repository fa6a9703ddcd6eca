"""构建设置合并

将 根级模板 + 配置模板 + 平台过滤 合并为一个有效 BuildSettings，
并在其上叠加命名构建类型（debug / release / ...）。

合并规则:
  - 列表型字段追加（文件/路径/版本等去重）
  - 标量字段由后应用的模板覆盖（未设置的不覆盖）
  - 平台后缀不匹配的条目跳过

每次调用都从 recipe 重新计算，不缓存结果。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from fnmatch import fnmatch
from pathlib import Path

from dubpkg.core.build_settings import BuildOption, BuildSettings, TargetType, normalize_path
from dubpkg.core.compiler import Compiler
from dubpkg.core.exceptions import BuildTypeError, ConfigurationNotFoundError, ValidationError
from dubpkg.core.platform import BuildPlatform
from dubpkg.core.recipe import BuildSettingsTemplate, ConfigurationInfo, PackageRecipe

logger = logging.getLogger(__name__)

# 伪构建类型: 从环境变量读取原始编译参数
BUILD_FLAGS_BUILD_TYPE = "$DFLAGS"

_O = BuildOption

# 内置构建类型 -> 构建选项
BUILTIN_BUILD_TYPES: dict[str, tuple[BuildOption, ...]] = {
    "plain": (),
    "debug": (_O.DEBUG_MODE, _O.DEBUG_INFO),
    "release": (_O.RELEASE_MODE, _O.OPTIMIZE, _O.INLINE),
    "release-debug": (_O.RELEASE_MODE, _O.OPTIMIZE, _O.INLINE, _O.DEBUG_INFO),
    "release-nobounds": (_O.RELEASE_MODE, _O.OPTIMIZE, _O.INLINE, _O.NO_BOUNDS_CHECK),
    "unittest": (_O.UNITTESTS, _O.DEBUG_MODE, _O.DEBUG_INFO),
    "docs": (_O.SYNTAX_ONLY, _O.DOCS),
    "ddox": (_O.SYNTAX_ONLY, _O.DDOX),
    "profile": (_O.PROFILE, _O.OPTIMIZE, _O.INLINE, _O.DEBUG_INFO),
    "profile-gc": (_O.PROFILE_GC, _O.DEBUG_INFO),
    "cov": (_O.COVERAGE, _O.DEBUG_INFO),
    "unittest-cov": (_O.UNITTESTS, _O.COVERAGE, _O.DEBUG_MODE, _O.DEBUG_INFO),
}

# 文件收集使用的匹配模式
SOURCE_FILE_PATTERNS = ("*.d",)
IMPORT_FILE_PATTERNS = ("*.d", "*.di")
STRING_IMPORT_FILE_PATTERNS = ("*",)


def _relative(f: Path, base: Path) -> str:
    try:
        return f.relative_to(base).as_posix()
    except ValueError:
        return f.as_posix()


def _scan_dir(root: Path, base: Path, patterns: tuple[str, ...]) -> list[str]:
    files: list[str] = []
    for f in sorted(root.rglob("*")):
        if f.name.startswith(".") or f.is_dir():
            continue
        if not any(fnmatch(f.name, pat) for pat in patterns):
            continue
        files.append(_relative(f, base))
    return files


def _platform_values(
    values: Mapping[str, list], platform: BuildPlatform,
) -> Iterable:
    for suffix, items in values.items():
        if platform.matches_specification(suffix):
            yield from items


def _collect_files(
    paths_map: Mapping[str, list[str]],
    platform: BuildPlatform,
    base: Path,
    patterns: tuple[str, ...],
) -> list[str]:
    files: list[str] = []
    for spath in _platform_values(paths_map, platform):
        if not spath:
            raise ValidationError("路径不能为空字符串")
        p = Path(spath)
        if not p.is_absolute():
            p = base / p
        if not p.is_dir():
            logger.warning("无效的源码/导入路径: %s", p)
            continue
        files.extend(_scan_dir(p, base, patterns))
    return files


def apply_platform_settings(
    dst: BuildSettings,
    template: BuildSettingsTemplate,
    platform: BuildPlatform,
    base: Path,
    *,
    apply_exclusions: bool = True,
) -> None:
    """将模板中适用于 platform 的条目合并进 dst

    apply_exclusions=False 时不移除 excludedSourceFiles，用于全量汇总视图。
    """
    if template.target_type != TargetType.AUTODETECT:
        dst.target_type = template.target_type
    if template.target_path:
        dst.target_path = template.target_path
    if template.target_name:
        dst.target_name = template.target_name
    if template.working_directory:
        dst.working_directory = template.working_directory
    if template.main_source_file:
        dst.main_source_file = normalize_path(template.main_source_file)
        dst.add_source_files([dst.main_source_file])

    # 从源码/导入目录收集文件
    dst.add_source_files(_collect_files(
        template.source_paths, platform, base, SOURCE_FILE_PATTERNS))
    dst.add_import_files(_collect_files(
        template.import_paths, platform, base, IMPORT_FILE_PATTERNS))
    dst.add_string_import_files(_collect_files(
        template.string_import_paths, platform, base, STRING_IMPORT_FILE_PATTERNS))

    dst.add_dflags(_platform_values(template.dflags, platform))
    dst.add_lflags(_platform_values(template.lflags, platform))
    dst.add_libs(_platform_values(template.libs, platform))
    dst.add_source_files(_platform_values(template.source_files, platform))
    if apply_exclusions:
        dst.remove_source_files(_platform_values(template.excluded_source_files, platform))
    dst.add_copy_files(_platform_values(template.copy_files, platform))
    dst.add_versions(_platform_values(template.versions, platform))
    dst.add_debug_versions(_platform_values(template.debug_versions, platform))
    dst.add_import_paths(_platform_values(template.import_paths, platform))
    dst.add_string_import_paths(_platform_values(template.string_import_paths, platform))
    dst.add_pre_generate_commands(_platform_values(template.pre_generate_commands, platform))
    dst.add_post_generate_commands(_platform_values(template.post_generate_commands, platform))
    dst.add_pre_build_commands(_platform_values(template.pre_build_commands, platform))
    dst.add_post_build_commands(_platform_values(template.post_build_commands, platform))
    dst.add_requirements(_platform_values(template.build_requirements, platform))
    dst.add_options(_platform_values(template.build_options, platform))


class BuildSettingsResolver:
    """按平台 + 配置计算有效构建设置

    参数:
        recipe:          有效包描述（已补全默认配置）
        path:            包所在目录，None 表示非本地包（以当前目录为基准）
        qualified_name:  包限定名，用于默认目标名与错误信息
        compiler:        用于提取编译参数的编译器能力
        environ:         伪构建类型 "$DFLAGS" 读取的环境变量表
        build_flags_env: 上述环境变量名
    """

    def __init__(
        self,
        recipe: PackageRecipe,
        path: Path | None,
        qualified_name: str,
        compiler: Compiler,
        *,
        environ: Mapping[str, str] | None = None,
        build_flags_env: str = "DFLAGS",
    ) -> None:
        self.recipe = recipe
        self.base = path if path is not None else Path(".")
        self.qualified_name = qualified_name
        self.compiler = compiler
        self.environ: Mapping[str, str] = environ if environ is not None else {}
        self.build_flags_env = build_flags_env

    def _require_configuration(self, config: str) -> ConfigurationInfo:
        conf = self.recipe.find_configuration(config)
        if conf is None:
            raise ConfigurationNotFoundError(
                f"包 {self.qualified_name} 中不存在配置: {config}"
            )
        return conf

    def template(self, config: str = "") -> BuildSettingsTemplate:
        """返回根级模板，或指定配置自身的模板（不含根级设置）"""
        if not config:
            return self.recipe.build_settings
        return self._require_configuration(config).build_settings

    def _finalize(self, settings: BuildSettings) -> BuildSettings:
        if not settings.target_name:
            settings.target_name = self.qualified_name.replace(":", "_")
        self.compiler.extract_build_options(settings)
        return settings

    def resolve(self, platform: BuildPlatform, config: str = "") -> BuildSettings:
        """合并根级与指定配置的设置

        config 为空时只使用根级设置；非空但不存在时抛 ConfigurationNotFoundError。
        """
        conf = self._require_configuration(config) if config else None

        ret = BuildSettings()
        apply_platform_settings(ret, self.recipe.build_settings, platform, self.base)
        if conf is not None:
            apply_platform_settings(ret, conf.build_settings, platform, self.base)
        return self._finalize(ret)

    def combined(self) -> BuildSettings:
        """所有平台、所有配置的并集，仅用于 IDE 等全量文件视图"""
        any_platform = BuildPlatform.any()
        ret = BuildSettings()
        apply_platform_settings(
            ret, self.recipe.build_settings, any_platform, self.base, apply_exclusions=False,
        )
        for conf in self.recipe.configurations:
            apply_platform_settings(
                ret, conf.build_settings, any_platform, self.base, apply_exclusions=False,
            )
        return self._finalize(ret)

    def add_build_type_settings(
        self, settings: BuildSettings, platform: BuildPlatform, build_type: str,
    ) -> None:
        """在已有设置上叠加构建类型

        优先使用 recipe 中的自定义构建类型，其次为内置构建类型，都不匹配时抛 BuildTypeError。
        """
        if build_type == BUILD_FLAGS_BUILD_TYPE:
            flags = self.environ.get(self.build_flags_env, "")
            settings.add_dflags(flags.split())
            return

        custom = self.recipe.build_types.get(build_type)
        if custom is not None:
            logger.info("使用自定义构建类型 '%s'", build_type)
            apply_platform_settings(settings, custom, platform, self.base)
            return

        options = BUILTIN_BUILD_TYPES.get(build_type)
        if options is None:
            raise BuildTypeError(
                f"包 {self.qualified_name} 的构建类型未知: '{build_type}'"
            )
        settings.add_options(options)

    def get_sub_configuration(
        self, config: str, dependency: str, platform: BuildPlatform,
    ) -> str | None:
        """返回依赖 dependency 应使用的配置名，未指定时返回 None

        配置级映射优先于根级映射。
        platform 参数目前不参与计算: subConfigurations 不支持平台后缀。
        """
        if config:
            conf = self._require_configuration(config)
            selected = conf.build_settings.sub_configurations.get(dependency)
            if selected is not None:
                return selected
        return self.recipe.build_settings.sub_configurations.get(dependency)
