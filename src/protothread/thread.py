"""
执行单元 - 无栈协作式线程的状态持有者

每个 Protothread 只持有一个可变位置值（Dunkels 所称的 "local continuation"）：
- NOT_STARTED: 下次 step() 从 body 起点开始
- 合法 token:  下次 step() 从该 token 对应的挂起点恢复
- TERMINATED:  step() 为空操作并返回 False
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional

from .common import UnifiedLogger, get_logger
from .interfaces import ThreadObserver
from .types import (
    NOT_STARTED,
    TERMINATED,
    ReentrantStepError,
    ThreadState,
)


class Protothread(ABC):
    """
    轻量级无栈线程

    子类实现 step()，每次调用推进到下一个挂起点后立即返回。
    跨越挂起点的数据只能保存在实例字段中。
    """

    def __init__(self, name: Optional[str] = None, logger: Optional[UnifiedLogger] = None):
        self.position: int = NOT_STARTED
        self.name = name or type(self).__name__
        self._logger = logger
        self._observers: List[ThreadObserver] = []
        self._executing = False
        # 每次 restart()/stop() 递增，用于在 body 内部检测自身被重置
        self._epoch = 0

    # ------------------------------------------------------------------
    # 生命周期操作
    # ------------------------------------------------------------------

    def restart(self) -> None:
        """无条件回到 NOT_STARTED，不会执行 body"""
        self.position = NOT_STARTED
        self._epoch += 1
        self.logger.debug(f"{self.name}: restart")
        self._notify_observers("restarted")

    def stop(self) -> None:
        """
        无条件进入 TERMINATED，可在任意时刻调用（包括 body 内部）

        注意：与 Dunkels 原版不同，结束后不会自动重启。
        """
        was_running = self.position != TERMINATED
        self.position = TERMINATED
        self._epoch += 1
        if was_running:
            self.logger.debug(f"{self.name}: terminated")
            self._notify_observers("terminated")

    def is_running(self) -> bool:
        """运行中或等待中返回 True，结束或退出后返回 False"""
        return self.position != TERMINATED

    @property
    def state(self) -> ThreadState:
        return ThreadState.from_position(self.position)

    @abstractmethod
    def step(self) -> bool:
        """
        执行到下一个挂起点或结尾

        Returns:
            True 表示仍在运行，False 表示已结束。已终止时再次调用为空操作。
        """

    # ------------------------------------------------------------------
    # 子类使用的内部协议
    # ------------------------------------------------------------------

    def _enter_step(self) -> None:
        if self._executing:
            raise ReentrantStepError(
                f"{self.name}: step() 被重入调用（递归或环状等待）",
                thread=self,
            )
        self._executing = True

    def _leave_step(self) -> None:
        self._executing = False

    def _suspend_at(self, token: int) -> None:
        """记录挂起点 token"""
        if self.position != token:
            self.position = token
            self.logger.debug(f"{self.name}: suspended at {token}")
            self._notify_observers("suspended")

    def _reassert_terminated(self) -> bool:
        self.position = TERMINATED
        return False

    # ------------------------------------------------------------------
    # 观察者与父子关系
    # ------------------------------------------------------------------

    @property
    def logger(self) -> UnifiedLogger:
        return self._logger or get_logger()

    def add_observer(self, observer: ThreadObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: ThreadObserver) -> None:
        self._observers.remove(observer)

    def children(self) -> Iterator["Protothread"]:
        """按声明顺序遍历作为字段持有的子单元"""
        for value in vars(self).values():
            if isinstance(value, Protothread):
                yield value
            elif isinstance(value, (list, tuple)):
                for item in value:
                    if isinstance(item, Protothread):
                        yield item

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式（不含子单元，整棵树见 tree.thread_tree_to_json）"""
        return {
            "name": self.name,
            "type": type(self).__name__,
            "position": self.position,
            "state": self.state.value,
        }

    def _notify_observers(self, event: str) -> None:
        callback_name = f"on_thread_{event}"
        for observer in list(self._observers):
            callback = getattr(observer, callback_name, None)
            if not callback:
                continue
            try:
                callback(self)
            except Exception as exc:  # 观察者异常不应中断执行
                self.logger.debug(f"Observer error on {event}: {exc}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, state={self.state.value}, position={self.position})"
