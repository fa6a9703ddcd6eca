"""全局配置与异常体系测试"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from dubpkg.core.config import Config, get_config, init_config
from dubpkg.core.exceptions import (
    BuildTypeError,
    ConfigError,
    ConfigurationNotFoundError,
    DubPkgError,
    RecipeNotFoundError,
    StoreError,
    ValidationError,
)

# =========================================================================
# config.py
# =========================================================================


class TestConfig:
    def test_default_values(self) -> None:
        cfg = Config()
        assert cfg.default_compiler == "dmd"
        assert cfg.version_cache == "auto"
        assert cfg.build_flags_env == "DFLAGS"

    def test_from_file_missing(self, tmp_path: Path) -> None:
        cfg = Config.from_file(str(tmp_path / "nonexist.yml"))
        assert cfg.default_compiler == "dmd"

    def test_from_file_with_data(self, tmp_path: Path) -> None:
        f = tmp_path / "cfg.yml"
        f.write_text("default_compiler: ldc2\nversion_cache: \"on\"\nmirror: x\n", encoding="utf-8")
        cfg = Config.from_file(str(f))
        assert cfg.default_compiler == "ldc2"
        assert cfg.version_cache_enabled is True
        assert cfg.extra == {"mirror": "x"}

    def test_invalid_cache_mode(self) -> None:
        with pytest.raises(ConfigError, match="version_cache"):
            Config(version_cache="sometimes")

    @pytest.mark.parametrize(("mode", "platform", "expected"), [
        ("auto", "win32", True),
        ("auto", "linux", False),
        ("on", "linux", True),
        ("off", "win32", False),
    ])
    def test_cache_enabled(self, monkeypatch, mode: str, platform: str, expected: bool) -> None:
        monkeypatch.setattr(sys, "platform", platform)
        assert Config(version_cache=mode).version_cache_enabled is expected

    def test_to_dict(self) -> None:
        d = Config().to_dict()
        assert isinstance(d, dict) and d["version_cache_file"] == ".dub/version.json"

    def test_global_singleton(self, tmp_path: Path) -> None:
        import dubpkg.core.config as cfgmod

        cfgmod._current = None
        assert get_config().default_compiler == "dmd"

        f = tmp_path / "init.yml"
        f.write_text("build_flags_env: MYFLAGS\n", encoding="utf-8")
        init_config(str(f))
        assert get_config().build_flags_env == "MYFLAGS"
        cfgmod._current = None


# =========================================================================
# exceptions.py
# =========================================================================


class TestExceptions:
    @pytest.mark.parametrize(("cls", "code"), [
        (ConfigError, "CONFIG_ERROR"),
        (RecipeNotFoundError, "RECIPE_NOT_FOUND"),
        (ConfigurationNotFoundError, "CONFIGURATION_NOT_FOUND"),
        (BuildTypeError, "UNKNOWN_BUILD_TYPE"),
        (StoreError, "STORE_ERROR"),
        (ValidationError, "VALIDATION_ERROR"),
    ])
    def test_codes(self, cls: type, code: str) -> None:
        err = cls("msg")
        assert isinstance(err, DubPkgError)
        assert err.code == code
        assert str(err) == "msg"

    def test_validation_details(self) -> None:
        assert ValidationError("bad", details=["a"]).details == ["a"]
        assert ValidationError("bad").details == []
