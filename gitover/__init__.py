"""gitover - 多仓库共享工作树叠加管理"""

__version__ = "0.4.0"
