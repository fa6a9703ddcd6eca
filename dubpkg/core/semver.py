"""语义化版本 (SemVer 2.0) 校验与比较"""

from __future__ import annotations

import re

_NUM = r"0|[1-9][0-9]*"
_PRE_ID = r"0|[1-9][0-9]*|[0-9]*[A-Za-z-][0-9A-Za-z-]*"
_BUILD_ID = r"[0-9A-Za-z-]+"

_SEMVER_RE = re.compile(
    rf"^(?P<major>{_NUM})\.(?P<minor>{_NUM})\.(?P<patch>{_NUM})"
    rf"(?:-(?P<pre>(?:{_PRE_ID})(?:\.(?:{_PRE_ID}))*))?"
    rf"(?:\+(?P<build>{_BUILD_ID}(?:\.{_BUILD_ID})*))?$"
)


def is_valid_version(ver: str) -> bool:
    """是否为合法的语义化版本号（不带前缀 v）"""
    return _SEMVER_RE.match(ver) is not None


def _parse(ver: str) -> tuple[tuple[int, int, int], list[str]]:
    m = _SEMVER_RE.match(ver)
    if m is None:
        raise ValueError(f"非法的语义化版本: {ver}")
    core = (int(m["major"]), int(m["minor"]), int(m["patch"]))
    pre = m["pre"].split(".") if m["pre"] else []
    return core, pre


def _compare_pre_id(a: str, b: str) -> int:
    a_num, b_num = a.isdigit(), b.isdigit()
    if a_num and b_num:
        return (int(a) > int(b)) - (int(a) < int(b))
    # 纯数字标识符总是低于字母数字标识符
    if a_num != b_num:
        return -1 if a_num else 1
    return (a > b) - (a < b)


def compare_versions(a: str, b: str) -> int:
    """按 SemVer 优先级比较两个版本，返回 -1 / 0 / 1

    构建元数据 (+...) 不参与比较。
    """
    core_a, pre_a = _parse(a)
    core_b, pre_b = _parse(b)
    if core_a != core_b:
        return -1 if core_a < core_b else 1

    # 无预发布标识的版本优先级更高
    if not pre_a or not pre_b:
        return (not pre_a) - (not pre_b)

    for x, y in zip(pre_a, pre_b):
        c = _compare_pre_id(x, y)
        if c:
            return c
    return (len(pre_a) > len(pre_b)) - (len(pre_a) < len(pre_b))
