"""包版本值

版本是不透明的字符串值，有两个特殊标记:
  - unknown:  无法确定版本
  - ~master:  跟踪默认分支（主分支哨兵）

以 "~" 开头的版本表示分支版本（如 ~feature-x）。
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering

from dubpkg.core.semver import compare_versions

UNKNOWN_VERSION = "unknown"
MASTER_BRANCH = "~master"
BRANCH_PREFIX = "~"


@total_ordering
@dataclass(frozen=True)
class Version:
    """包版本（不可变）"""

    value: str

    @classmethod
    def unknown(cls) -> Version:
        return cls(UNKNOWN_VERSION)

    @classmethod
    def master_branch(cls) -> Version:
        return cls(MASTER_BRANCH)

    @property
    def is_unknown(self) -> bool:
        return self.value == UNKNOWN_VERSION

    @property
    def is_branch(self) -> bool:
        return self.value.startswith(BRANCH_PREFIX)

    @property
    def is_master(self) -> bool:
        return self.value == MASTER_BRANCH

    @property
    def is_empty(self) -> bool:
        return not self.value

    def __str__(self) -> str:
        return self.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def compare(self, other: Version) -> int:
        """比较两个版本，返回 -1 / 0 / 1；任一方为 unknown 时抛 ValueError"""
        if self.is_unknown or other.is_unknown:
            raise ValueError(f"无法比较未知版本 (this: {self}, other: {other})")
        if self.value == other.value:
            return 0
        if self.is_branch or other.is_branch:
            # 正式版本总是高于分支版本；~master 高于其他分支
            if not self.is_branch:
                return 1
            if not other.is_branch:
                return -1
            if self.is_master:
                return 1
            if other.is_master:
                return -1
            return -1 if self.value < other.value else 1
        ret = compare_versions(self.value, other.value)
        if ret == 0:
            # 仅构建元数据不同: 按字符串排序，与 == 保持一致
            return -1 if self.value < other.value else 1
        return ret
