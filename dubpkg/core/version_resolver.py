"""从版本控制状态推导包版本

规则（tag 必须形如 v<semver>）:
  - 距 tag 0 个提交:          <semver>
  - tag 含 "+"（已有元数据）: <semver>.commit.<距离>.<提交>
  - 其他:                     <semver>+commit.<距离>.<提交>
  - 无可用 tag 时取当前分支:  ~<分支名>（分离头指针除外）
  - 都失败时返回空串，由调用方退回主分支哨兵

可选的版本缓存以 HEAD 提交为键，避免每次都启动外部进程；
HEAD 变化时失效重算，缓存文件缺失/损坏时忽略。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from dubpkg.core.scm import DescribeResult, GitScm, ScmProvider
from dubpkg.core.semver import is_valid_version
from dubpkg.utils.file_io import atomic_write, load_json

logger = logging.getLogger(__name__)

DEFAULT_CACHE_FILE = ".dub/version.json"


def version_from_describe(result: DescribeResult) -> str:
    """将 describe 结果转换为版本号，tag 不合规时返回空串"""
    tag = result.tag
    if not tag.startswith("v") or not is_valid_version(tag[1:]):
        return ""
    ver = tag[1:]
    if result.distance == 0:
        return ver
    if "+" in ver:
        return f"{ver}.commit.{result.distance}.{result.commit}"
    return f"{ver}+commit.{result.distance}.{result.commit}"


class VersionResolver:
    """版本推导器"""

    def __init__(
        self,
        scm: ScmProvider | None = None,
        *,
        use_cache: bool = False,
        cache_file: str = DEFAULT_CACHE_FILE,
    ) -> None:
        self.scm: ScmProvider = scm or GitScm()
        self.use_cache = use_cache
        self.cache_file = cache_file

    def determine_version(self, path: str | Path) -> str:
        """推导版本号；无法确定时返回空串"""
        root = Path(path)
        head = ""
        if self.use_cache:
            head = self.scm.head_commit(root)
            cached = self._read_cache(root, head)
            if cached is not None:
                logger.debug("版本缓存命中: %s -> %s", head, cached)
                return cached

        ver = self._determine_with_scm(root)

        if self.use_cache and head:
            self._write_cache(root, head, ver)
        return ver

    def _determine_with_scm(self, root: Path) -> str:
        if not self.scm.is_working_copy(root):
            return ""

        described = self.scm.describe(root)
        if described is not None:
            ver = version_from_describe(described)
            if ver:
                return ver
            logger.debug("tag 不是合法版本号，改用分支名: %s", described.tag)

        branch = self.scm.current_branch(root)
        if branch and branch != "HEAD":
            return f"~{branch}"
        return ""

    # ------------------------------------------------------------------
    # 版本缓存
    # ------------------------------------------------------------------

    def _read_cache(self, root: Path, head: str) -> str | None:
        if not head:
            return None
        try:
            data = load_json(root / self.cache_file)
        except (OSError, ValueError) as e:
            # json.JSONDecodeError 是 ValueError 的子类
            logger.debug("版本缓存不可读，忽略: %s", e)
            return None
        ver = data.get("version")
        if data.get("commit") != head or not isinstance(ver, str):
            return None
        return ver

    def _write_cache(self, root: Path, head: str, ver: str) -> None:
        try:
            content = json.dumps({"commit": head, "version": ver}, indent="\t")
            atomic_write(root / self.cache_file, content + "\n")
        except OSError as e:
            logger.debug("版本缓存写入失败，忽略: %s", e)
