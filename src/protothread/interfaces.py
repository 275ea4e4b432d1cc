"""
协作者接口定义
"""

from typing import Protocol, runtime_checkable, Any


@runtime_checkable
class Steppable(Protocol):
    """可被驱动器或父单元推进的执行单元协议"""

    def step(self) -> bool:
        """
        推进到下一个挂起点或结尾

        Returns:
            True 表示仍在运行，False 表示本次调用后已终止
        """
        ...

    def restart(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def is_running(self) -> bool:
        ...


@runtime_checkable
class Condition(Protocol):
    """挂起条件协议：接收执行单元，返回无副作用的布尔值"""

    def __call__(self, unit: Any) -> bool:
        ...


class ThreadObserver(Protocol):
    """
    执行单元生命周期观察者

    回调均为可选，缺失的回调会被忽略：
        on_thread_restarted(unit)
        on_thread_suspended(unit)
        on_thread_terminated(unit)
    """

    def on_thread_restarted(self, unit: Any) -> None:
        ...

    def on_thread_suspended(self, unit: Any) -> None:
        ...

    def on_thread_terminated(self, unit: Any) -> None:
        ...
