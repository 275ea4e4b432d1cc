"""
挂起原语 - 两种 body 风格共用的命令对象

每个挂起原语实现 poll(unit, first)：
- first=True  表示本次调用刚刚执行到该挂起点（位置已记录为其 token）
- first=False 表示本次调用是从该挂起点恢复
返回 True 时继续执行后续语句，返回 False 时本次 step() 立即返回“仍在运行”。
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Optional, Union

from .interfaces import Steppable
from .types import ThreadDefinitionError, is_valid_token

ConditionRef = Union[str, bool, Callable[..., Any]]
ChildRef = Union[str, Steppable, Callable[[Any], Steppable]]


def evaluate_condition(ref: ConditionRef, unit: Any) -> bool:
    """
    求值条件引用

    - 字符串: 取 unit 同名属性，可调用则无参调用，否则按真值判断
    - 绑定方法（如 timer.expired）: 无参调用
    - 其它可调用对象: 以 unit 为唯一参数调用
    - bool: 常量
    """
    if isinstance(ref, bool):
        return ref
    if isinstance(ref, str):
        value = getattr(unit, ref)
        if callable(value):
            value = value()
        return bool(value)
    if inspect.ismethod(ref):
        return bool(ref())
    return bool(ref(unit))


def resolve_child(ref: ChildRef, unit: Any) -> Steppable:
    """解析子单元引用"""
    if isinstance(ref, str):
        child = getattr(unit, ref)
    elif isinstance(ref, Steppable):
        child = ref
    else:
        child = ref(unit)
    if not isinstance(child, Steppable):
        raise TypeError(f"{child!r} 不是可推进的执行单元")
    return child


class Primitive:
    """body 语句原语基类"""

    #: 是否为挂起点（需要分配 token）
    suspends = True

    def __init__(self, token: Optional[int] = None):
        if token is not None and not is_valid_token(token):
            raise ThreadDefinitionError(f"显式 token {token!r} 越界")
        self.token = token

    def poll(self, unit: Any, first: bool) -> bool:
        raise NotImplementedError

    def __repr__(self) -> str:
        extra = f", token={self.token}" if self.token is not None else ""
        return f"{type(self).__name__}({self._describe()}{extra})"

    def _describe(self) -> str:
        return ""


class WaitUntil(Primitive):
    """等待直到条件成立；条件已成立时不挂起"""

    def __init__(self, condition: ConditionRef, token: Optional[int] = None):
        super().__init__(token)
        self.condition = condition

    def poll(self, unit: Any, first: bool) -> bool:
        return evaluate_condition(self.condition, unit)

    def _describe(self) -> str:
        return repr(self.condition)


class WaitWhile(WaitUntil):
    """条件成立期间持续等待"""

    def poll(self, unit: Any, first: bool) -> bool:
        return not evaluate_condition(self.condition, unit)


class Yield(Primitive):
    """无条件让出恰好一次"""

    def poll(self, unit: Any, first: bool) -> bool:
        return not first


class YieldUntil(WaitUntil):
    """至少让出一次，之后等价于 WaitUntil"""

    def poll(self, unit: Any, first: bool) -> bool:
        if first:
            return False
        return evaluate_condition(self.condition, unit)


class WaitThread(Primitive):
    """每次调用推进子单元一步，直到子单元结束"""

    def __init__(self, child: ChildRef, token: Optional[int] = None):
        super().__init__(token)
        self.child = child

    def poll(self, unit: Any, first: bool) -> bool:
        return not resolve_child(self.child, unit).step()

    def _describe(self) -> str:
        return repr(self.child)


class Spawn(WaitThread):
    """重启子单元并等待其结束"""

    def poll(self, unit: Any, first: bool) -> bool:
        child = resolve_child(self.child, unit)
        if first:
            child.restart()
        return not child.step()


class RestartSelf(Primitive):
    """回到 body 起点；本次返回“仍在运行”，下次调用从头执行"""

    suspends = False

    def __init__(self):
        super().__init__(None)


class ExitThread(Primitive):
    """立即终止并返回“已结束”"""

    suspends = False

    def __init__(self):
        super().__init__(None)


def wait_until(condition: ConditionRef, *, token: Optional[int] = None) -> WaitUntil:
    return WaitUntil(condition, token)


def wait_while(condition: ConditionRef, *, token: Optional[int] = None) -> WaitWhile:
    return WaitWhile(condition, token)


def yield_(*, token: Optional[int] = None) -> Yield:
    return Yield(token)


def yield_until(condition: ConditionRef, *, token: Optional[int] = None) -> YieldUntil:
    return YieldUntil(condition, token)


def wait_thread(child: ChildRef, *, token: Optional[int] = None) -> WaitThread:
    return WaitThread(child, token)


def spawn(child: ChildRef, *, token: Optional[int] = None) -> Spawn:
    return Spawn(child, token)


def restart_self() -> RestartSelf:
    return RestartSelf()


def exit_thread() -> ExitThread:
    return ExitThread()
