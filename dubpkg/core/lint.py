"""包描述结构检查（只告警，不阻断）

- 包名为空
- 配置重名（解析时总是取第一个，后者不可达）
- 位于独立目录的子包与父包的许可证不一致
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dubpkg.core.package import Package

logger = logging.getLogger(__name__)


def lint_package(pkg: Package) -> list[str]:
    """检查包结构，返回告警信息列表（同时写 warning 日志）"""
    warnings: list[str] = []

    parent = pkg.parent_package
    if parent is not None and parent.path != pkg.path:
        license_ = pkg.recipe.license
        if license_ and license_ != parent.recipe.license:
            warnings.append(
                f"子包 {pkg.name} 的许可证与父包不同，不建议这样做"
            )

    if not pkg.recipe.name:
        warnings.append(f"{pkg.path or '<内存>'} 中的包没有名称")

    seen: set[str] = set()
    for conf in pkg.recipe.configurations:
        if conf.name in seen:
            warnings.append(
                f"包 \"{pkg.name}\" 中定义了多个名为 \"{conf.name}\" 的配置，"
                "很可能导致配置解析问题"
            )
        seen.add(conf.name)

    for w in warnings:
        logger.warning("Warning: %s", w)
    return warnings
