"""
公用工具组件 - 执行预算和日志工具
"""

import logging
from typing import Optional
from dataclasses import dataclass
from enum import Enum


class ExecutionMode(Enum):
    """驱动模式"""
    SYNC = "sync"       # 同步驱动
    ASYNC = "async"     # 异步驱动


@dataclass
class StepBudget:
    """执行预算 - 约束单次 step() 与驱动循环"""
    max_instructions: Optional[int] = None # 单次 step() 内最多执行的指令数，None 表示不限
    max_steps: Optional[int] = None        # 驱动循环最多调用 step() 的次数

    def __post_init__(self):
        """验证预算参数"""
        if self.max_instructions is not None and self.max_instructions <= 0:
            raise ValueError("max_instructions 必须大于0")
        if self.max_steps is not None and self.max_steps <= 0:
            raise ValueError("max_steps 必须大于0")


DEFAULT_BUDGET = StepBudget()


class UnifiedLogger:
    """统一日志器"""

    def __init__(self, logger: Optional[logging.Logger] = None, mode: ExecutionMode = ExecutionMode.SYNC):
        self.logger = logger or self._create_default_logger()
        self.mode = mode

    def _create_default_logger(self) -> logging.Logger:
        """创建默认日志器"""
        logger = logging.getLogger("protothread")
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)
            if logger.level == logging.NOTSET:
                logger.setLevel(logging.INFO)
        return logger

    def debug(self, message: str, **kwargs):
        """调试信息"""
        self.logger.debug(f"[{self.mode.value.upper()}] {message}", **kwargs)

    def info(self, message: str, **kwargs):
        """普通信息"""
        self.logger.info(f"[{self.mode.value.upper()}] {message}", **kwargs)

    def warning(self, message: str, **kwargs):
        """警告信息"""
        self.logger.warning(f"[{self.mode.value.upper()}] {message}", **kwargs)

    def error(self, message: str, **kwargs):
        """错误信息"""
        self.logger.error(f"[{self.mode.value.upper()}] {message}", **kwargs)


_default_logger: Optional[UnifiedLogger] = None


def get_logger() -> UnifiedLogger:
    """获取进程内共享的默认日志器"""
    global _default_logger
    if _default_logger is None:
        _default_logger = UnifiedLogger()
    return _default_logger
