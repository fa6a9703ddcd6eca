"""编译器能力测试（参数提取 / 目标文件名 / 注册表）"""

from __future__ import annotations

import copy

import pytest

from dubpkg.core.build_settings import BuildOption, BuildSettings, TargetType
from dubpkg.core.compiler import (
    DmdCompiler,
    find_compiler,
    get_compiler,
    register_compiler,
    special_flag_warnings,
)
from dubpkg.core.exceptions import ValidationError
from dubpkg.core.platform import BuildPlatform

LINUX = BuildPlatform(platform=("linux", "posix"), compiler="dmd")
WINDOWS = BuildPlatform(platform=("windows",), compiler="dmd")
OSX = BuildPlatform(platform=("osx", "posix"), compiler="dmd")


class TestExtractBuildOptions:
    def test_promotes_known_flags(self) -> None:
        bs = BuildSettings(dflags=["-g", "-O", "-release", "-m64", "-version=Foo", "-Isrc", "-Jviews"])
        DmdCompiler().extract_build_options(bs)
        assert bs.options == {BuildOption.DEBUG_INFO, BuildOption.OPTIMIZE, BuildOption.RELEASE_MODE}
        assert bs.dflags == ["-m64"]
        assert bs.versions == ["Foo"]
        assert bs.import_paths == ["src"]
        assert bs.string_import_paths == ["views"]

    def test_idempotent(self) -> None:
        bs = BuildSettings(dflags=["-g", "-debug=Trace", "-vcolumns"])
        compiler = DmdCompiler()
        compiler.extract_build_options(bs)
        first = copy.deepcopy(bs)
        compiler.extract_build_options(bs)
        assert bs == first
        assert bs.debug_versions == ["Trace"]

    def test_ddox_needs_both_flags(self) -> None:
        bs = BuildSettings(dflags=["-Xfdocs.json"])
        DmdCompiler().extract_build_options(bs)
        assert BuildOption.DDOX not in bs.options
        assert bs.dflags == ["-Xfdocs.json"]


class TestTargetFileName:
    @pytest.mark.parametrize(("tt", "platform", "expected"), [
        (TargetType.EXECUTABLE, LINUX, "app"),
        (TargetType.EXECUTABLE, WINDOWS, "app.exe"),
        (TargetType.LIBRARY, LINUX, "libapp.a"),
        (TargetType.STATIC_LIBRARY, WINDOWS, "app.lib"),
        (TargetType.DYNAMIC_LIBRARY, LINUX, "libapp.so"),
        (TargetType.DYNAMIC_LIBRARY, OSX, "libapp.dylib"),
        (TargetType.DYNAMIC_LIBRARY, WINDOWS, "app.dll"),
        (TargetType.OBJECT, LINUX, "app.o"),
        (TargetType.OBJECT, WINDOWS, "app.obj"),
        (TargetType.SOURCE_LIBRARY, LINUX, ""),
        (TargetType.NONE, LINUX, ""),
    ])
    def test_names(self, tt: TargetType, platform: BuildPlatform, expected: str) -> None:
        bs = BuildSettings(target_type=tt, target_name="app")
        assert DmdCompiler().get_target_file_name(bs, platform) == expected

    def test_autodetect_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DmdCompiler().get_target_file_name(BuildSettings(target_name="app"), LINUX)


class TestRegistry:
    def test_lookup(self) -> None:
        assert isinstance(get_compiler("dmd"), DmdCompiler)
        assert isinstance(find_compiler("/usr/bin/dmd"), DmdCompiler)
        assert isinstance(find_compiler("C:\\D\\dmd.exe"), DmdCompiler)
        assert find_compiler("nope") is None

    def test_unknown_raises(self) -> None:
        with pytest.raises(ValidationError, match="nope"):
            get_compiler("nope")

    def test_register_custom(self) -> None:
        class LdcCompiler(DmdCompiler):
            name = "ldc2"

        register_compiler("ldc2", LdcCompiler)
        assert get_compiler("ldc2").name == "ldc2"


class TestSpecialFlags:
    def test_warnings(self) -> None:
        found = dict(special_flag_warnings(["-g", "-m64", "-version=X", "-J."]))
        assert set(found) == {"-g", "-version=X", "-J."}
        assert "debugInfo" in found["-g"]
