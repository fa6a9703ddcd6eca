"""统一异常体系

所有业务异常继承 DubPkgError，替代散落的 ValueError / RuntimeError。
CLI 层可据此输出友好提示，调用方可按 code 区分错误类别。
"""

from __future__ import annotations


class DubPkgError(Exception):
    """包模型基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(DubPkgError):
    """配置文件或包描述内容无效"""

    code = "CONFIG_ERROR"


class RecipeNotFoundError(DubPkgError):
    """指定目录下找不到可识别的包描述文件"""

    code = "RECIPE_NOT_FOUND"


class ConfigurationNotFoundError(DubPkgError):
    """请求的构建配置不存在"""

    code = "CONFIGURATION_NOT_FOUND"


class BuildTypeError(DubPkgError):
    """构建类型既不是自定义类型，也不是内置类型"""

    code = "UNKNOWN_BUILD_TYPE"


class StoreError(DubPkgError):
    """包描述持久化的前置条件不满足"""

    code = "STORE_ERROR"


class ExecutionError(DubPkgError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"


class ValidationError(DubPkgError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []
