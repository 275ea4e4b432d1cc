"""
核心类型定义

包含执行单元位置编码、状态枚举和协议异常。
"""

from __future__ import annotations
from enum import Enum


# 位置编码：16位无符号整数
NOT_STARTED = 0               # 未启动，下次从 body 起点执行
TERMINATED = 0xFFFF           # 已终止，与任何合法 token 不同
MIN_TOKEN = 1
MAX_TOKEN = TERMINATED - 1


class ThreadState(Enum):
    """执行单元状态枚举"""
    NOT_STARTED = "not_started"   # 未启动
    SUSPENDED = "suspended"       # 挂起于某个 token
    TERMINATED = "terminated"     # 已终止

    @classmethod
    def from_position(cls, position: int) -> "ThreadState":
        """由位置值推导状态"""
        if position == NOT_STARTED:
            return cls.NOT_STARTED
        if position == TERMINATED:
            return cls.TERMINATED
        return cls.SUSPENDED


def is_valid_token(token: int) -> bool:
    """token 必须落在 [MIN_TOKEN, MAX_TOKEN] 区间"""
    return isinstance(token, int) and MIN_TOKEN <= token <= MAX_TOKEN


class ProtothreadError(RuntimeError):
    """执行单元协议错误基类"""

    def __init__(self, message: str, *, thread: object = None):
        super().__init__(message)
        self.thread = thread


class ThreadDefinitionError(ProtothreadError):
    """body 定义错误（token 重复、越界或语句非法），在定义期抛出"""


class ReentrantStepError(ProtothreadError):
    """同一执行单元的 step() 被重入调用"""


class StepBudgetExceeded(ProtothreadError):
    """单次 step() 或驱动循环超出预算"""


class ThreadTreeError(ProtothreadError):
    """父子树违反独占所有权或出现环"""
