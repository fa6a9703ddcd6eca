"""dubpkg - 构建工具的包模型核心

根据包描述（recipe）计算指定平台/配置下的有效构建设置，
在未声明配置时按目录约定生成默认配置，从版本控制推导包版本，
并导出供 IDE / 依赖解析器使用的包描述。
"""

__version__ = "0.3.0"
