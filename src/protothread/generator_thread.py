"""
生成器形式的执行单元

Python 生成器本身就是可挂起函数，因此 body 可以直接写成生成器方法，
在每个等待点 yield 一个挂起原语::

    class Blinker(GeneratorThread):
        def run(self):
            for self.i in range(10):
                self.led.on()
                yield wait_until(self.timer.expired)
                self.led.off()
                yield                      # 等价于 yield_()

续体由生成器帧保存，position 仍然按挂起点分配唯一 token，供观察者、
序列化和调试使用。token 以完整的 ``yield from`` 链（代码对象 + 字节码偏移）
为键，因此被多处调用的辅助生成器内的挂起点不会与调用点混淆。
"""

from __future__ import annotations

import inspect
from abc import abstractmethod
from typing import Any, Dict, Generator, Optional, Tuple

from .common import UnifiedLogger
from .primitives import ExitThread, Primitive, RestartSelf, Yield
from .thread import Protothread
from .types import MAX_TOKEN, TERMINATED, ThreadDefinitionError

Site = Tuple[Tuple[Any, int], ...]


class TokenRegistry:
    """按挂起点位置单调分配 token，每个类一份"""

    def __init__(self, owner: str):
        self.owner = owner
        self._tokens: Dict[Site, int] = {}
        self._next = 1

    def token_for(self, site: Site) -> int:
        token = self._tokens.get(site)
        if token is None:
            if self._next > MAX_TOKEN:
                raise ThreadDefinitionError(f"{self.owner}: 挂起点数量超过 {MAX_TOKEN}")
            token = self._next
            self._next += 1
            self._tokens[site] = token
        return token

    def __len__(self) -> int:
        return len(self._tokens)


def suspension_site(generator: Generator) -> Site:
    """沿 yield from 链收集 (代码对象, 字节码偏移)"""
    site = []
    current: Any = generator
    while current is not None:
        frame = getattr(current, "gi_frame", None)
        if frame is None:
            break
        site.append((current.gi_code, frame.f_lasti))
        current = getattr(current, "gi_yieldfrom", None)
    return tuple(site)


class GeneratorThread(Protothread):
    """以生成器方法 run() 为 body 的执行单元"""

    token_registry: TokenRegistry = TokenRegistry("GeneratorThread")

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        run = cls.__dict__.get("run")
        if run is not None and not inspect.isgeneratorfunction(run):
            raise ThreadDefinitionError(f"{cls.__qualname__}.run 必须是生成器函数")
        cls.token_registry = TokenRegistry(cls.__qualname__)

    def __init__(self, name: Optional[str] = None, logger: Optional[UnifiedLogger] = None):
        super().__init__(name=name, logger=logger)
        self._body: Optional[Generator] = None
        self._pending: Optional[Primitive] = None

    @abstractmethod
    def run(self) -> Generator[Optional[Primitive], None, None]:
        """body：在每个挂起点 yield 一个原语"""

    def restart(self) -> None:
        super().restart()
        self._discard_body()

    def stop(self) -> None:
        super().stop()
        self._discard_body()

    def _discard_body(self) -> None:
        body, self._body = self._body, None
        self._pending = None
        # body 内部调用 stop()/restart() 时生成器仍在执行，留给 step() 收尾
        if body is not None and not body.gi_running:
            body.close()

    def step(self) -> bool:
        if self.position == TERMINATED:
            return self._reassert_terminated()

        self._enter_step()
        try:
            return self._advance()
        finally:
            self._leave_step()

    def _advance(self) -> bool:
        if self._body is None:
            self._body = self.run()
        body = self._body
        epoch = self._epoch
        command = self._pending
        first = False

        while True:
            if command is not None:
                # poll 抛出异常时保留挂起原语，下次调用重新检查
                proceed = command.poll(self, first)
                if self._epoch != epoch:
                    return self._finish_reset(body)
                if not proceed:
                    return True
                self._pending = None

            try:
                command = body.send(None)
            except StopIteration:
                if self._epoch != epoch:
                    return self.is_running()
                # end-marker
                self.stop()
                return False
            except Exception:
                self.logger.debug(f"{self.name}: body 抛出异常，终止")
                self.stop()
                raise

            if self._epoch != epoch:
                return self._finish_reset(body)

            if command is None:
                command = Yield()
            if isinstance(command, RestartSelf):
                self.restart()
                return True
            if isinstance(command, ExitThread):
                self.stop()
                return False
            if not isinstance(command, Primitive):
                self.stop()
                raise TypeError(f"{self.name}: body 只能 yield 挂起原语，得到 {command!r}")

            self._suspend_at(self.token_registry.token_for(suspension_site(body)))
            self._pending = command
            first = True

    def _finish_reset(self, body: Generator) -> bool:
        """body 执行期间自身被 stop()/restart()，关闭旧生成器"""
        if body is not self._body:
            body.close()
        return self.is_running()
