"""包描述文件读写测试"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from dubpkg.core.build_settings import BuildOption, BuildRequirement, TargetType
from dubpkg.core.exceptions import ConfigError
from dubpkg.core.recipe_io import (
    default_recipe_filename,
    find_package_file,
    parse_recipe,
    read_package_recipe,
    recipe_filenames,
    recipe_to_dict,
)

SAMPLE = {
    "name": "foo",
    "version": "1.0.0",
    "authors": ["a", "b"],
    "license": "MIT",
    "targetType": "library",
    "dflags-linux-dmd": ["-fPIC"],
    "versions": "Single",
    "buildOptions": ["inline"],
    "buildRequirements-windows": ["allowWarnings"],
    "dependencies": {
        "bar": "~>1.0",
        "baz": {"path": "../baz"},
        ":util": {"version": "*", "optional": True},
    },
    "subConfigurations": {"bar": "lite"},
    "configurations": [
        {"name": "lib", "platforms": ["linux"], "sourceFiles": ["extra.d"]},
        {"name": "app", "targetType": "executable", "mainSourceFile": "source/app.d"},
    ],
    "buildTypes": {"fast": {"dflags": ["-O3"]}},
    "subPackages": ["./tools", {"name": "inner", "dependencies": {":other": "*"}}],
}


class TestRecipeFiles:
    def test_preference_order(self, tmp_path: Path) -> None:
        assert recipe_filenames() == ["dub.json", "dub.yml", "package.json"]
        assert default_recipe_filename() == "dub.json"

        (tmp_path / "package.json").write_text("{}", encoding="utf-8")
        assert find_package_file(tmp_path).name == "package.json"
        (tmp_path / "dub.yml").write_text("name: x\n", encoding="utf-8")
        assert find_package_file(tmp_path).name == "dub.yml"
        (tmp_path / "dub.json").write_text("{}", encoding="utf-8")
        assert find_package_file(tmp_path).name == "dub.json"

    def test_none_found(self, tmp_path: Path) -> None:
        assert find_package_file(tmp_path) is None

    def test_malformed_json(self, tmp_path: Path) -> None:
        p = tmp_path / "dub.json"
        p.write_text("{oops", encoding="utf-8")
        with pytest.raises(ConfigError, match="dub.json"):
            read_package_recipe(p)

    def test_yaml(self, tmp_path: Path) -> None:
        p = tmp_path / "dub.yml"
        p.write_text("name: foo\nsourcePaths:\n  - lib\n", encoding="utf-8")
        recipe = read_package_recipe(p)
        assert recipe.name == "foo"
        assert recipe.build_settings.source_paths == {"": ["lib"]}


class TestParseRecipe:
    def test_metadata_and_settings(self) -> None:
        r = parse_recipe(SAMPLE)
        assert r.name == "foo" and r.version == "1.0.0"
        assert r.authors == ["a", "b"]
        bs = r.build_settings
        assert bs.target_type == TargetType.LIBRARY
        assert bs.dflags == {"-linux-dmd": ["-fPIC"]}
        assert bs.versions == {"": ["Single"]}
        assert bs.build_options == {"": [BuildOption.INLINE]}
        assert bs.build_requirements == {"-windows": [BuildRequirement.ALLOW_WARNINGS]}
        assert bs.sub_configurations == {"bar": "lite"}

    def test_dependencies(self) -> None:
        deps = parse_recipe(SAMPLE).build_settings.dependencies
        assert deps["bar"].version == "~>1.0"
        assert deps["baz"].is_path_based
        assert deps["foo:util"].optional

    def test_configurations_and_build_types(self) -> None:
        r = parse_recipe(SAMPLE)
        assert [c.name for c in r.configurations] == ["lib", "app"]
        assert r.configurations[0].platforms == ["linux"]
        assert r.configurations[0].build_settings.source_files == {"": ["extra.d"]}
        assert r.configurations[1].build_settings.main_source_file == "source/app.d"
        assert r.build_types["fast"].dflags == {"": ["-O3"]}

    def test_sub_packages(self) -> None:
        r = parse_recipe(SAMPLE)
        assert r.sub_packages[0].path == "./tools"
        inner = r.sub_packages[1].recipe
        assert inner is not None and inner.name == "inner"
        assert "foo:other" in inner.build_settings.dependencies

    @pytest.mark.parametrize("data", [
        {"targetType": "bogus"},
        {"buildOptions": ["notAnOption"]},
        {"dflags": [1, 2]},
        {"configurations": [{"targetType": "library"}]},
    ])
    def test_invalid(self, data: dict) -> None:
        with pytest.raises(ConfigError):
            parse_recipe({"name": "x", **data})

    def test_round_trip(self) -> None:
        r = parse_recipe(SAMPLE)
        again = parse_recipe(json.loads(json.dumps(recipe_to_dict(r))))
        assert again == r
