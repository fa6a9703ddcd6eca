"""YAML / JSON 文件统一读写工具

集中管理包描述、配置与版本缓存的序列化/反序列化，避免各模块重复实现。
统一 encoding="utf-8"、空值保护、目录自动创建、原子写入。
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 文件最大大小限制 (10MB)，防止异常大文件导致内存耗尽
MAX_FILE_SIZE = 10 * 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """原子写入文件：先写临时文件再 rename，防止中途崩溃导致损坏

    参数:
        path: 目标文件路径
        content: 要写入的内容

    异常:
        OSError: 文件写入或移动失败
        PermissionError: 无写入权限

    实现:
        1. 在同目录创建临时文件
        2. 写入内容到临时文件（with 块保证句柄在任何路径上关闭）
        3. 原子性地替换目标文件
        4. 如果失败，清理临时文件
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(
        dir=str(path.parent), suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, str(path))
    except Exception:
        # 只捕获普通异常，不拦截 KeyboardInterrupt/SystemExit
        try:
            os.unlink(tmp)
        except OSError:
            # 临时文件清理失败不影响原异常抛出
            pass
        raise


def _check_size(p: Path) -> None:
    file_size = p.stat().st_size
    if file_size > MAX_FILE_SIZE:
        raise ValueError(
            f"文件过大: {p} ({file_size} 字节), "
            f"超过限制 {MAX_FILE_SIZE} 字节"
        )


def load_yaml(path: str | Path) -> dict[str, Any]:
    """安全读取 YAML 文件

    参数:
        path: YAML 文件路径

    返回:
        dict: 解析后的字典。如果文件不存在、为空、或内容不是字典类型，返回空字典

    异常:
        yaml.YAMLError: YAML 格式错误
        OSError: IO 错误
        ValueError: 文件过大（超过 MAX_FILE_SIZE）
    """
    p = Path(path)
    if not p.exists():
        return {}

    _check_size(p)

    try:
        with open(p, encoding="utf-8") as f:
            result = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error("解析 YAML 文件失败: %s, 错误: %s", path, e)
        raise
    except OSError as e:
        logger.error("读取文件失败: %s, 错误: %s", path, e)
        raise

    if result is None:
        return {}
    if not isinstance(result, dict):
        logger.warning(
            "%s 内容不是字典类型 (实际类型: %s)，返回空字典",
            path, type(result).__name__,
        )
        return {}
    return result


def load_json(path: str | Path) -> dict[str, Any]:
    """读取 JSON 对象文件

    不存在返回空字典；内容不是 JSON 对象时同样返回空字典。

    异常:
        json.JSONDecodeError: JSON 格式错误
        OSError: IO 错误
    """
    p = Path(path)
    if not p.exists():
        return {}

    _check_size(p)

    with open(p, encoding="utf-8") as f:
        result = json.load(f)
    if not isinstance(result, dict):
        logger.warning(
            "%s 内容不是 JSON 对象 (实际类型: %s)，返回空字典",
            path, type(result).__name__,
        )
        return {}
    return result


def save_json(path: str | Path, data: Any) -> None:
    """原子写入格式化后的 JSON 文件（缩进 + 保持键顺序）"""
    p = Path(path)
    content = json.dumps(data, indent="\t", ensure_ascii=False) + "\n"
    try:
        atomic_write(p, content)
    except OSError as e:
        logger.error("写入文件失败: %s, 错误: %s", path, e)
        raise
