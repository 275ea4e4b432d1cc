"""
参考驱动器 - 反复调用根单元的 step() 直到结束

调度策略本身不属于执行单元核心；这里只提供测试和示例使用的最小驱动循环。
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from .common import ExecutionMode, StepBudget, UnifiedLogger
from .interfaces import Steppable
from .types import StepBudgetExceeded


def _check_steps(unit: Steppable, steps: int, budget: Optional[StepBudget]) -> None:
    if budget is not None and budget.max_steps is not None and steps >= budget.max_steps:
        raise StepBudgetExceeded(
            f"驱动循环调用 step() {steps} 次后仍未结束",
            thread=unit,
        )


def run_until_done(
    unit: Steppable,
    budget: Optional[StepBudget] = None,
    between_steps: Optional[Callable[[int], None]] = None,
    logger: Optional[UnifiedLogger] = None,
) -> int:
    """
    同步驱动：循环调用 step() 直到返回 False

    Args:
        unit: 根执行单元
        budget: 可选预算，超过 max_steps 抛出 StepBudgetExceeded
        between_steps: 每次返回"仍在运行"后调用，参数为已完成的调用次数
        logger: 日志器

    Returns:
        int: step() 调用总次数（含最后一次返回 False 的调用）
    """
    logger = logger or UnifiedLogger(mode=ExecutionMode.SYNC)
    steps = 0
    while True:
        _check_steps(unit, steps, budget)
        steps += 1
        if not unit.step():
            break
        if between_steps is not None:
            between_steps(steps)
    logger.debug(f"{unit!r} 在 {steps} 次调用后结束")
    return steps


async def run_async(
    unit: Steppable,
    interval: float = 0.0,
    budget: Optional[StepBudget] = None,
    logger: Optional[UnifiedLogger] = None,
) -> int:
    """
    异步驱动：每次 step() 之间 await asyncio.sleep(interval)，让出事件循环

    Returns:
        int: step() 调用总次数
    """
    if interval < 0:
        raise ValueError("interval 不能为负数")
    logger = logger or UnifiedLogger(mode=ExecutionMode.ASYNC)
    steps = 0
    while True:
        _check_steps(unit, steps, budget)
        steps += 1
        if not unit.step():
            break
        await asyncio.sleep(interval)
    logger.debug(f"{unit!r} 在 {steps} 次调用后结束")
    return steps
