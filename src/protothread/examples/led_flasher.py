"""
LED 闪烁示例 - 亮 250ms、灭 750ms，循环十次后结束
"""

from typing import List, Optional

from ..generator_thread import GeneratorThread
from ..primitives import wait_until
from ..program import ProgramThread, do, loop_while
from .timers import ExpiryTimer

ON_MS = 250
OFF_MS = 750
FLASH_COUNT = 10


class LED:
    """记录开关历史的假 LED"""

    def __init__(self):
        self.lit = False
        self.history: List[bool] = []

    def set(self, lit: bool) -> None:
        self.lit = lit
        self.history.append(lit)


class LEDFlasher(ProgramThread):
    """声明式写法"""

    body = [
        do(lambda t: setattr(t, "i", 0)),
        loop_while(lambda t: t.i < t.count, [
            do(lambda t: t.led.set(True)),
            do(lambda t: t.timer.start(ON_MS)),
            wait_until(lambda t: t.timer.expired()),

            do(lambda t: t.led.set(False)),
            do(lambda t: t.timer.start(OFF_MS)),
            wait_until(lambda t: t.timer.expired()),
            do(lambda t: setattr(t, "i", t.i + 1)),
        ]),
    ]

    def __init__(self, led: LED, timer: ExpiryTimer, count: int = FLASH_COUNT, name: Optional[str] = None):
        super().__init__(name=name)
        self.led = led
        self.timer = timer
        self.count = count
        self.i = 0


class GeneratorLEDFlasher(GeneratorThread):
    """生成器写法"""

    def __init__(self, led: LED, timer: ExpiryTimer, count: int = FLASH_COUNT, name: Optional[str] = None):
        super().__init__(name=name)
        self.led = led
        self.timer = timer
        self.count = count
        self.i = 0

    def run(self):
        for self.i in range(self.count):
            self.led.set(True)
            self.timer.start(ON_MS)
            yield wait_until(self.timer.expired)

            self.led.set(False)
            self.timer.start(OFF_MS)
            yield wait_until(self.timer.expired)
