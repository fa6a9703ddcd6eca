"""包实体

一个包 = 有效 recipe（已补全默认值）+ 原始 recipe 副本 + 所在目录 + 可选父包。

构造流程:
  1. 原样克隆 recipe 作为原始 recipe
  2. 版本: 显式覆盖 > recipe 声明 > 根包从版本控制推导（失败退回 ~master）
  3. 按目录约定补全默认路径与默认配置
  4. 结构检查（只告警）

子包不保存自己的版本，始终使用根包的版本。
构建设置每次调用都重新计算，不缓存。
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from dubpkg.core.build_settings import BuildSettings, TargetType
from dubpkg.core.compiler import Compiler, find_compiler, get_compiler, special_flag_warnings
from dubpkg.core.config import Config, get_config
from dubpkg.core.defaults import synthesize_defaults
from dubpkg.core.description import PackageDescription, describe_package
from dubpkg.core.exceptions import (
    RecipeNotFoundError,
    StoreError,
    ValidationError,
)
from dubpkg.core.lint import lint_package
from dubpkg.core.platform import BuildPlatform
from dubpkg.core.recipe import (
    BuildSettingsTemplate,
    Dependency,
    PackageDependency,
    PackageRecipe,
    SubPackage,
)
from dubpkg.core.recipe_io import (
    default_recipe_filename,
    find_package_file,
    read_package_recipe,
    recipe_filenames,
    recipe_to_dict,
)
from dubpkg.core.settings_resolver import BuildSettingsResolver
from dubpkg.core.version import MASTER_BRANCH, Version
from dubpkg.core.version_resolver import VersionResolver
from dubpkg.utils.file_io import save_json

logger = logging.getLogger(__name__)


class Package:
    """包实体

    参数:
        recipe:           原始包描述（不会被修改）
        root:             包所在目录；None 表示非本地包
        parent:           父包（子包时传入）
        version_override: 非空时无条件作为版本
        version_resolver: 版本推导器，默认按全局配置创建 VersionResolver
        compiler:         提取编译参数用的编译器，默认为配置中的 default_compiler
        environ:          伪构建类型 "$DFLAGS" 读取的环境变量表（默认空）
        config:           全局配置，默认 get_config()
    """

    def __init__(
        self,
        recipe: PackageRecipe,
        root: str | Path | None = None,
        parent: Package | None = None,
        version_override: str = "",
        *,
        version_resolver: VersionResolver | None = None,
        compiler: Compiler | None = None,
        environ: Mapping[str, str] | None = None,
        config: Config | None = None,
    ) -> None:
        self._config = config or get_config()
        self._parent = parent
        self._path: Path | None = Path(root) if root is not None else None
        self._recipe_path: Path | None = None
        self._compiler = compiler or get_compiler(self._config.default_compiler)
        self._environ: Mapping[str, str] = environ if environ is not None else {}

        self._raw_recipe = recipe.clone()
        working = recipe.clone()
        if version_override:
            working.version = version_override
        elif not working.version and parent is None:
            working.version = self._resolve_version(version_resolver)
        if parent is not None:
            # 子包版本由根包决定
            working.version = ""

        self._recipe = synthesize_defaults(working, self._path)
        lint_package(self)

    def _resolve_version(self, resolver: VersionResolver | None) -> str:
        if self._path is None:
            logger.debug("包 %s 不在本地目录，假定版本为 %s", self._recipe_name, MASTER_BRANCH)
            return MASTER_BRANCH
        if resolver is None:
            resolver = VersionResolver(
                use_cache=self._config.version_cache_enabled,
                cache_file=self._config.version_cache_file,
            )
        ver = ""
        try:
            ver = resolver.determine_version(self._path)
        except Exception as e:  # noqa: BLE001
            logger.debug("版本推导失败: %s: %s", self._path, e)
        if not ver:
            logger.debug(
                "无法从版本控制确定 %s 的版本，假定为 %s", self._path, MASTER_BRANCH,
            )
            return MASTER_BRANCH
        logger.debug("通过版本控制确定 %s 的版本: %s", self._path, ver)
        return ver

    @property
    def _recipe_name(self) -> str:
        return self._raw_recipe.name

    # ------------------------------------------------------------------
    # 加载 / 持久化
    # ------------------------------------------------------------------

    @classmethod
    def load(
        cls,
        root: str | Path,
        recipe_file: str | Path | None = None,
        parent: Package | None = None,
        version_override: str = "",
        **kwargs,
    ) -> Package:
        """从目录加载包

        recipe_file 为空时按优先级在 root 中查找包描述文件，
        找不到时抛 RecipeNotFoundError。
        """
        root_path = Path(root)
        path = Path(recipe_file) if recipe_file else find_package_file(root_path)
        if path is None or not path.is_file():
            raise RecipeNotFoundError(
                f"{root_path} 中没有包描述文件（需要以下之一: "
                f"{', '.join(recipe_filenames())}）"
            )
        recipe = read_package_recipe(path, parent.name if parent is not None else "")
        pkg = cls(recipe, root_path, parent, version_override, **kwargs)
        pkg._recipe_path = path
        return pkg

    def store_info(self, path: str | Path | None = None) -> Path:
        """将有效 recipe 写为 <目录>/dub.json

        不传 path 时写入包目录并更新 recipe_path。
        版本未知时抛 StoreError，不写任何文件。
        """
        if self.version.is_unknown:
            raise StoreError(f"包 {self.name} 的版本未知，拒绝写入包描述文件")

        if path is not None:
            directory = Path(path)
        elif self._path is not None:
            directory = self._path
        else:
            raise StoreError(f"包 {self.name} 不在本地目录，必须指定写入位置")

        data = recipe_to_dict(self._recipe)
        data["version"] = str(self.version)
        filename = directory / default_recipe_filename()
        save_json(filename, data)
        logger.debug("包描述已写入: %s", filename)
        if path is None:
            self._recipe_path = filename
        return filename

    # ------------------------------------------------------------------
    # 标识
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        """限定名: 父包限定名 + ':' + 自身名"""
        parts: list[str] = []
        pkg: Package | None = self
        while pkg is not None:
            parts.append(pkg._recipe.name)
            pkg = pkg._parent
        return ":".join(reversed(parts))

    @property
    def base_package(self) -> Package:
        pkg = self
        while pkg._parent is not None:
            pkg = pkg._parent
        return pkg

    @property
    def parent_package(self) -> Package | None:
        return self._parent

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def path_string(self) -> str:
        """目录形式的路径（以 / 结尾），非本地包为空串"""
        if self._path is None:
            return ""
        return self._path.as_posix().rstrip("/") + "/"

    @property
    def recipe_path(self) -> Path | None:
        return self._recipe_path

    @property
    def recipe(self) -> PackageRecipe:
        return self._recipe

    @property
    def raw_recipe(self) -> PackageRecipe:
        return self._raw_recipe

    @property
    def version(self) -> Version:
        if self._parent is not None:
            return self.base_package.version
        return Version(self._recipe.version)

    @version.setter
    def version(self, value: Version | str) -> None:
        if self._parent is not None:
            raise ValidationError(f"子包 {self.name} 的版本由根包决定，不能单独设置")
        self._recipe.version = str(value)

    @property
    def sub_packages(self) -> list[SubPackage]:
        return self._recipe.sub_packages

    @property
    def configurations(self) -> list[str]:
        return [c.name for c in self._recipe.configurations]

    def get_internal_sub_package(self, name: str) -> PackageRecipe | None:
        """返回内联子包的 recipe；路径引用的子包由调用方自行加载"""
        for sp in self._recipe.sub_packages:
            if not sp.path and sp.recipe is not None and sp.recipe.name == name:
                return sp.recipe
        return None

    def warn_on_special_compiler_flags(self) -> None:
        """对有通用替代写法的原始编译参数输出告警"""
        templates: list[tuple[str, BuildSettingsTemplate]] = [("", self._recipe.build_settings)]
        templates += [(c.name, c.build_settings) for c in self._recipe.configurations]
        for config, bs in templates:
            for flags in bs.dflags.values():
                for flag, hint in special_flag_warnings(flags):
                    where = f"{self.name}/{config}" if config else self.name
                    logger.warning("%s: 不建议直接使用编译参数 '%s'。%s", where, flag, hint)

    # ------------------------------------------------------------------
    # 构建设置
    # ------------------------------------------------------------------

    def _resolver(self) -> BuildSettingsResolver:
        return BuildSettingsResolver(
            self._recipe,
            self._path,
            self.name,
            self._compiler,
            environ=self._environ,
            build_flags_env=self._config.build_flags_env,
        )

    def get_build_settings_template(self, config: str = "") -> BuildSettingsTemplate:
        """根级模板，或指定配置自身的模板（不含根级设置）"""
        return self._resolver().template(config)

    def get_build_settings(self, platform: BuildPlatform, config: str = "") -> BuildSettings:
        return self._resolver().resolve(platform, config)

    def get_combined_build_settings(self) -> BuildSettings:
        return self._resolver().combined()

    def add_build_type_settings(
        self, settings: BuildSettings, platform: BuildPlatform, build_type: str,
    ) -> None:
        self._resolver().add_build_type_settings(settings, platform, build_type)

    def get_sub_configuration(
        self, config: str, dependency: Package | str, platform: BuildPlatform,
    ) -> str | None:
        dep_name = dependency.name if isinstance(dependency, Package) else dependency
        return self._resolver().get_sub_configuration(config, dep_name, platform)

    # ------------------------------------------------------------------
    # 配置选择
    # ------------------------------------------------------------------

    def get_platform_configurations(
        self, platform: BuildPlatform, allow_non_library: bool = False,
    ) -> list[str]:
        """适用于 platform 的配置名；一个都没有时返回 [""]"""
        ret: list[str] = []
        for conf in self._recipe.configurations:
            if not conf.matches_platform(platform):
                continue
            if not allow_non_library and conf.build_settings.target_type == TargetType.EXECUTABLE:
                continue
            ret.append(conf.name)
        return ret or [""]

    def get_default_configuration(
        self, platform: BuildPlatform, allow_non_library: bool = False,
    ) -> str:
        """第一个适用于 platform 的配置名，没有时返回空串"""
        return self.get_platform_configurations(platform, allow_non_library)[0]

    # ------------------------------------------------------------------
    # 依赖
    # ------------------------------------------------------------------

    def has_dependency(self, name: str, config: str = "") -> bool:
        """config 为空时检查所有配置"""
        if name in self._recipe.build_settings.dependencies:
            return True
        return any(
            name in c.build_settings.dependencies
            for c in self._recipe.configurations
            if not config or c.name == config
        )

    def get_dependencies(self, config: str = "") -> dict[str, Dependency]:
        """根级依赖 + 指定配置的依赖（同名时配置级优先）

        配置不存在时只返回根级依赖。
        """
        ret = dict(self._recipe.build_settings.dependencies)
        conf = self._recipe.find_configuration(config) if config else None
        if conf is not None:
            ret.update(conf.build_settings.dependencies)
        return ret

    def get_all_dependencies(self) -> list[PackageDependency]:
        """所有配置中出现的依赖，同名依赖可能出现多次"""
        ret = [
            PackageDependency(n, d)
            for n, d in self._recipe.build_settings.dependencies.items()
        ]
        for conf in self._recipe.configurations:
            ret.extend(
                PackageDependency(n, d)
                for n, d in conf.build_settings.dependencies.items()
            )
        return ret

    # ------------------------------------------------------------------
    # 描述导出
    # ------------------------------------------------------------------

    def describe(
        self,
        platform: BuildPlatform,
        config: str = "",
        compiler: Compiler | None = None,
    ) -> PackageDescription:
        """生成包描述；未传 compiler 时按 platform.compiler 查找（可能为 None）"""
        if compiler is None:
            compiler = find_compiler(platform.compiler_binary or platform.compiler)
        return describe_package(self, platform, compiler, config)

    def __repr__(self) -> str:
        return f"Package({self.name!r}, {self.version.value!r})"
