"""
示例定时器 - 用作 wait_until 的外部条件源
"""

import time
from typing import Callable, Optional


class ManualClock:
    """手动推进的时钟，单位毫秒，供测试使用"""

    def __init__(self, start_ms: float = 0.0):
        self.now_ms = start_ms

    def advance(self, ms: float) -> None:
        self.now_ms += ms

    def __call__(self) -> float:
        return self.now_ms


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class ExpiryTimer:
    """到期定时器：start(ms) 后 expired() 在超时后返回 True"""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self.clock = clock or monotonic_ms
        self._deadline: Optional[float] = None

    def start(self, ms: float) -> None:
        if ms < 0:
            raise ValueError("ms 不能为负数")
        self._deadline = self.clock() + ms

    def expired(self) -> bool:
        """未启动的定时器视为已到期"""
        return self._deadline is None or self.clock() >= self._deadline

    def remaining(self) -> float:
        if self._deadline is None:
            return 0.0
        return max(0.0, self._deadline - self.clock())
