"""集中配置管理

替代各模块散落的默认值，提供统一的配置入口。
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
import sys
from dataclasses import asdict, dataclass, field

from dubpkg.core.exceptions import ConfigError
from dubpkg.utils.file_io import load_yaml

logger = logging.getLogger(__name__)

_CACHE_MODES = ("auto", "on", "off")


@dataclass
class Config:
    """包模型全局配置"""

    # 编译器
    default_compiler: str = "dmd"

    # 版本推导缓存: auto 仅在 Windows 上启用（外部进程启动较慢）
    version_cache: str = "auto"
    version_cache_file: str = ".dub/version.json"

    # 伪构建类型 "$DFLAGS" 读取的环境变量名
    build_flags_env: str = "DFLAGS"

    # 日志
    log_level: str = "INFO"
    log_json: bool = False

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.version_cache not in _CACHE_MODES:
            raise ConfigError(
                f"version_cache 取值无效: {self.version_cache}（可用: {list(_CACHE_MODES)}）"
            )

    @property
    def version_cache_enabled(self) -> bool:
        if self.version_cache == "auto":
            return sys.platform == "win32"
        return self.version_cache == "on"

    @classmethod
    def from_file(cls, path: str = "configs/dubpkg.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "configs/dubpkg.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
