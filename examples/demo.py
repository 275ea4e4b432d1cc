#!/usr/bin/env python3
"""
Protothread 演示脚本

运行方式：
    python examples/demo.py

演示内容：
1. 声明式 LED 闪烁（真实时钟，异步驱动）
2. 生成器写法的父子组合（spawn 两次）
3. 执行树快照
"""

import asyncio
import json
import logging

from protothread import (
    GeneratorThread,
    ProgramThread,
    do,
    loop_while,
    run_async,
    run_until_done,
    spawn,
    thread_tree_to_json,
    yield_,
)
from protothread.examples import LED, ExpiryTimer, LEDFlasher


class Countdown(ProgramThread):
    """每次调用递减一次，归零后结束"""

    body = [
        do(lambda t: setattr(t, "left", t.start_from)),
        loop_while(lambda t: t.left > 0, [
            do("tick"),
            yield_(),
        ]),
    ]

    def __init__(self, start_from: int):
        super().__init__(name=f"countdown-{start_from}")
        self.start_from = start_from
        self.left = start_from

    def tick(self) -> None:
        print(f"  {self.name}: {self.left}")
        self.left -= 1


class Launcher(GeneratorThread):
    """两次重新启动同一个倒计时"""

    def __init__(self):
        super().__init__(name="launcher")
        self.countdown = Countdown(3)

    def run(self):
        for attempt in (1, 2):
            print(f"launch attempt {attempt}")
            yield spawn(self.countdown)
            yield yield_()
        print("launched")


def demo_led_flasher():
    print("=== 演示1: LED 闪烁（3 次） ===")
    led = LED()
    flasher = LEDFlasher(led, ExpiryTimer(), count=3)
    steps = asyncio.run(run_async(flasher, interval=0.05))
    print(f"history={led.history} steps={steps}")


def demo_spawn():
    print("=== 演示2: spawn ===")
    launcher = Launcher()
    snapshots = []
    steps = run_until_done(
        launcher,
        between_steps=lambda _: snapshots.append(thread_tree_to_json(launcher)),
    )
    print(f"steps={steps}")
    print("=== 演示3: 第一次挂起时的执行树 ===")
    print(json.dumps(snapshots[0], indent=2, ensure_ascii=False))


if __name__ == "__main__":
    logging.getLogger("protothread").setLevel(logging.INFO)
    demo_led_flasher()
    demo_spawn()
