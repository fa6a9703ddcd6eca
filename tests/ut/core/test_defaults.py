"""默认路径 / 入口文件 / 默认配置补全测试"""

from __future__ import annotations

from pathlib import Path

from dubpkg.core.build_settings import TargetType
from dubpkg.core.defaults import (
    APPLICATION_CONFIG,
    LIBRARY_CONFIG,
    add_default_paths,
    find_main_file,
    synthesize_defaults,
)
from dubpkg.core.recipe import BuildSettingsTemplate, ConfigurationInfo, PackageRecipe


def _touch(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("", encoding="utf-8")


class TestDefaultPaths:
    def test_source_dir_added(self, tmp_path: Path) -> None:
        (tmp_path / "source").mkdir()
        bs = BuildSettingsTemplate()
        add_default_paths(bs, tmp_path)
        assert bs.source_paths == {"": ["source/"]}
        assert bs.import_paths == {"": ["source/"]}

    def test_only_first_existing_source_dir(self, tmp_path: Path) -> None:
        (tmp_path / "source").mkdir()
        (tmp_path / "src").mkdir()
        bs = BuildSettingsTemplate()
        add_default_paths(bs, tmp_path)
        assert bs.source_paths[""] == ["source/"]

    def test_src_used_when_no_source(self, tmp_path: Path) -> None:
        (tmp_path / "src").mkdir()
        bs = BuildSettingsTemplate()
        add_default_paths(bs, tmp_path)
        assert bs.source_paths[""] == ["src/"]

    def test_declared_paths_kept(self, tmp_path: Path) -> None:
        (tmp_path / "source").mkdir()
        bs = BuildSettingsTemplate(source_paths={"": ["lib/"]})
        add_default_paths(bs, tmp_path)
        assert bs.source_paths[""] == ["lib/"]
        assert bs.import_paths[""] == ["source/"]

    def test_platform_specific_paths_do_not_count(self, tmp_path: Path) -> None:
        (tmp_path / "source").mkdir()
        bs = BuildSettingsTemplate(source_paths={"-windows": ["win/"]})
        add_default_paths(bs, tmp_path)
        assert bs.source_paths[""] == ["source/"]

    def test_views_dir(self, tmp_path: Path) -> None:
        (tmp_path / "views").mkdir()
        bs = BuildSettingsTemplate()
        add_default_paths(bs, tmp_path)
        assert bs.string_import_paths == {"": ["views"]}
        assert bs.source_paths == {}

    def test_nothing_on_disk(self, tmp_path: Path) -> None:
        bs = BuildSettingsTemplate()
        add_default_paths(bs, tmp_path)
        assert bs.source_paths == {} and bs.string_import_paths == {}


class TestFindMainFile:
    def test_candidates_order(self, tmp_path: Path) -> None:
        _touch(tmp_path / "source" / "main.d")
        _touch(tmp_path / "source" / "app.d")
        bs = BuildSettingsTemplate(source_paths={"": ["source/"]})
        assert find_main_file("foo", bs, tmp_path) == "source/app.d"

    def test_package_named_main(self, tmp_path: Path) -> None:
        _touch(tmp_path / "source" / "foo" / "main.d")
        bs = BuildSettingsTemplate(source_paths={"": ["source/"]})
        assert find_main_file("foo", bs, tmp_path) == "source/foo/main.d"

    def test_not_found(self, tmp_path: Path) -> None:
        _touch(tmp_path / "source" / "lib.d")
        bs = BuildSettingsTemplate(source_paths={"": ["source/"]})
        assert find_main_file("foo", bs, tmp_path) == ""


class TestSynthesizeDefaults:
    def test_executable_yields_application(self, tmp_path: Path) -> None:
        _touch(tmp_path / "source" / "app.d")
        raw = PackageRecipe(
            name="foo",
            build_settings=BuildSettingsTemplate(target_type=TargetType.EXECUTABLE),
        )
        recipe = synthesize_defaults(raw, tmp_path)

        assert [c.name for c in recipe.configurations] == [APPLICATION_CONFIG]
        app = recipe.configurations[0].build_settings
        assert app.target_type == TargetType.EXECUTABLE
        assert app.main_source_file == "source/app.d"

    def test_executable_keeps_declared_main(self, tmp_path: Path) -> None:
        _touch(tmp_path / "source" / "app.d")
        raw = PackageRecipe(
            name="foo",
            build_settings=BuildSettingsTemplate(
                target_type=TargetType.EXECUTABLE, main_source_file="source/entry.d",
            ),
        )
        recipe = synthesize_defaults(raw, tmp_path)
        assert recipe.configurations[0].build_settings.main_source_file == ""

    def test_autodetect_with_main_yields_two(self, tmp_path: Path) -> None:
        _touch(tmp_path / "source" / "app.d")
        _touch(tmp_path / "source" / "lib.d")
        recipe = synthesize_defaults(PackageRecipe(name="foo"), tmp_path)

        names = [c.name for c in recipe.configurations]
        assert sorted(names) == [APPLICATION_CONFIG, LIBRARY_CONFIG]
        lib = recipe.find_configuration(LIBRARY_CONFIG).build_settings
        app = recipe.find_configuration(APPLICATION_CONFIG).build_settings
        assert lib.target_type == TargetType.LIBRARY
        assert lib.excluded_source_files == {"": ["source/app.d"]}
        assert app.target_type == TargetType.EXECUTABLE
        assert app.main_source_file == "source/app.d"

    def test_autodetect_without_main_yields_library(self, tmp_path: Path) -> None:
        _touch(tmp_path / "source" / "lib.d")
        recipe = synthesize_defaults(PackageRecipe(name="foo"), tmp_path)
        assert [c.name for c in recipe.configurations] == [LIBRARY_CONFIG]
        assert recipe.configurations[0].build_settings.excluded_source_files == {}

    def test_static_library_keeps_type(self, tmp_path: Path) -> None:
        raw = PackageRecipe(
            name="foo",
            build_settings=BuildSettingsTemplate(target_type=TargetType.STATIC_LIBRARY),
        )
        recipe = synthesize_defaults(raw, tmp_path)
        assert recipe.configurations[0].build_settings.target_type == TargetType.STATIC_LIBRARY

    def test_target_none_yields_nothing(self, tmp_path: Path) -> None:
        raw = PackageRecipe(
            name="foo", build_settings=BuildSettingsTemplate(target_type=TargetType.NONE),
        )
        assert synthesize_defaults(raw, tmp_path).configurations == []

    def test_declared_configurations_untouched(self, tmp_path: Path) -> None:
        _touch(tmp_path / "source" / "app.d")
        raw = PackageRecipe(name="foo", configurations=[ConfigurationInfo("custom")])
        recipe = synthesize_defaults(raw, tmp_path)
        assert [c.name for c in recipe.configurations] == ["custom"]

    def test_raw_recipe_not_mutated(self, tmp_path: Path) -> None:
        _touch(tmp_path / "source" / "app.d")
        raw = PackageRecipe(name="foo")
        synthesize_defaults(raw, tmp_path)
        assert raw.configurations == []
        assert raw.build_settings.source_paths == {}

    def test_non_local_package(self) -> None:
        recipe = synthesize_defaults(PackageRecipe(name="foo"), None)
        assert [c.name for c in recipe.configurations] == [LIBRARY_CONFIG]
        assert recipe.build_settings.source_paths == {}
