"""
声明式 body - 显式状态机形式的执行单元

body 是一串语句（挂起原语、do/when/loop_while/loop_forever），在类定义时
被编译为扁平的指令序列：

- 每个挂起点按出现位置由单调递增计数器分配唯一 token（也可显式指定）；
- token 表把 token 映射到记录它的那条 SUSPEND 指令，step() 据此直接跳回；
- 顺序执行到指令序列末尾即为 end-marker，执行单元进入 TERMINATED。

示例::

    class Blinker(ProgramThread):
        body = [
            do(lambda t: t.led.on()),
            wait_until(lambda t: t.timer.expired()),
            do(lambda t: t.led.off()),
        ]
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .common import DEFAULT_BUDGET, StepBudget, UnifiedLogger
from .primitives import ConditionRef, ExitThread, Primitive, RestartSelf, evaluate_condition
from .thread import Protothread
from .types import (
    MAX_TOKEN,
    NOT_STARTED,
    TERMINATED,
    ProtothreadError,
    StepBudgetExceeded,
    ThreadDefinitionError,
)

ActionRef = Union[str, Callable[..., Any]]


class Opcode(Enum):
    """指令类型"""
    ACTION = "action"       # 执行动作
    SUSPEND = "suspend"     # 挂起点
    BRANCH = "branch"       # 条件为假时跳转
    JUMP = "jump"           # 无条件跳转
    RESTART = "restart"     # restart-self
    EXIT = "exit"           # exit


@dataclass(frozen=True)
class Instruction:
    """编译后的单条指令"""

    opcode: Opcode
    operand: Any = None
    target: Optional[int] = None
    token: Optional[int] = None


# ----------------------------------------------------------------------
# 控制流语句
# ----------------------------------------------------------------------


class Do:
    """执行一个不挂起的动作"""

    def __init__(self, action: ActionRef):
        self.action = action


class When:
    """条件分支"""

    def __init__(self, condition: ConditionRef, then: Sequence[Any], orelse: Sequence[Any] = ()):
        self.condition = condition
        self.then = then
        self.orelse = orelse


class LoopWhile:
    """条件循环；循环体内通常包含挂起点"""

    def __init__(self, condition: ConditionRef, body: Sequence[Any]):
        self.condition = condition
        self.body = body


def do(action: ActionRef) -> Do:
    return Do(action)


def when(condition: ConditionRef, then: Sequence[Any], orelse: Sequence[Any] = ()) -> When:
    return When(condition, then, orelse)


def loop_while(condition: ConditionRef, body: Sequence[Any]) -> LoopWhile:
    return LoopWhile(condition, body)


def loop_forever(body: Sequence[Any]) -> LoopWhile:
    return LoopWhile(True, body)


def invoke_action(ref: ActionRef, unit: Any) -> None:
    """调用动作引用，解析规则与条件引用一致"""
    if isinstance(ref, str):
        getattr(unit, ref)()
    elif inspect.ismethod(ref):
        ref()
    else:
        ref(unit)


# ----------------------------------------------------------------------
# 编译
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class Program:
    """编译后的 body：指令序列与 token 分派表"""

    owner: str
    instructions: tuple
    resume_table: Dict[int, int]

    @property
    def tokens(self) -> List[int]:
        return sorted(self.resume_table)

    def resume_index(self, token: int) -> int:
        try:
            return self.resume_table[token]
        except KeyError:
            raise ProtothreadError(f"{self.owner}: 位置 {token} 不是本 body 的合法 token") from None

    def run(self, unit: Protothread, budget: StepBudget) -> bool:
        """
        begin-marker：按当前位置分派，执行到下一个挂起点或结尾

        Returns:
            True 表示仍在运行，False 表示已结束
        """
        if unit.position == NOT_STARTED:
            pc, resuming = 0, False
        else:
            pc, resuming = self.resume_index(unit.position), True

        epoch = unit._epoch
        executed = 0
        limit = budget.max_instructions
        instructions = self.instructions

        while pc < len(instructions):
            executed += 1
            if limit is not None and executed > limit:
                raise StepBudgetExceeded(
                    f"{unit.name}: 单次 step() 执行超过 {budget.max_instructions} 条指令仍未挂起",
                    thread=unit,
                )

            instruction = instructions[pc]
            opcode = instruction.opcode

            if opcode is Opcode.SUSPEND:
                first = not resuming
                resuming = False
                if first:
                    unit._suspend_at(instruction.token)
                proceed = instruction.operand.poll(unit, first)
                if unit._epoch != epoch:
                    return unit.is_running()
                if not proceed:
                    return True
                pc += 1
            elif opcode is Opcode.ACTION:
                invoke_action(instruction.operand, unit)
                if unit._epoch != epoch:
                    return unit.is_running()
                pc += 1
            elif opcode is Opcode.BRANCH:
                taken = evaluate_condition(instruction.operand, unit)
                if unit._epoch != epoch:
                    return unit.is_running()
                pc = pc + 1 if taken else instruction.target
            elif opcode is Opcode.JUMP:
                pc = instruction.target
            elif opcode is Opcode.RESTART:
                unit.restart()
                return True
            elif opcode is Opcode.EXIT:
                unit.stop()
                return False
            else:  # pragma: no cover
                raise ProtothreadError(f"未知指令: {opcode}")

        # end-marker
        unit.stop()
        return False


class _BodyCompiler:
    """把语句树展开为扁平指令序列"""

    def __init__(self, owner: str):
        self.owner = owner
        self.instructions: List[Instruction] = []
        self.reserved: set = set()
        self.next_token = 1

    def compile(self, statements: Sequence[Any]) -> Program:
        self._reserve_explicit_tokens(statements)
        self._compile_block(statements)

        resume_table: Dict[int, int] = {}
        for index, instruction in enumerate(self.instructions):
            if instruction.opcode is Opcode.SUSPEND:
                resume_table[instruction.token] = index
        return Program(self.owner, tuple(self.instructions), resume_table)

    def _reserve_explicit_tokens(self, statements: Sequence[Any]) -> None:
        for statement in self._walk(statements):
            if isinstance(statement, Primitive) and statement.suspends and statement.token is not None:
                if statement.token in self.reserved:
                    raise ThreadDefinitionError(
                        f"{self.owner}: token {statement.token} 被多个挂起点重复使用"
                    )
                self.reserved.add(statement.token)

    def _walk(self, statements: Sequence[Any]):
        if not isinstance(statements, (list, tuple)):
            raise ThreadDefinitionError(f"{self.owner}: body 必须是语句列表，得到 {statements!r}")
        for statement in statements:
            yield statement
            if isinstance(statement, When):
                yield from self._walk(statement.then)
                yield from self._walk(statement.orelse)
            elif isinstance(statement, LoopWhile):
                yield from self._walk(statement.body)

    def _allocate_token(self) -> int:
        while self.next_token in self.reserved:
            self.next_token += 1
        token = self.next_token
        if token > MAX_TOKEN:
            raise ThreadDefinitionError(f"{self.owner}: 挂起点数量超过 {MAX_TOKEN}")
        self.next_token += 1
        return token

    def _emit(self, opcode: Opcode, operand: Any = None, token: Optional[int] = None) -> int:
        self.instructions.append(Instruction(opcode, operand, None, token))
        return len(self.instructions) - 1

    def _patch(self, index: int, target: int) -> None:
        old = self.instructions[index]
        self.instructions[index] = Instruction(old.opcode, old.operand, target, old.token)

    def _compile_block(self, statements: Sequence[Any]) -> None:
        for statement in statements:
            self._compile_statement(statement)

    def _compile_statement(self, statement: Any) -> None:
        if isinstance(statement, RestartSelf):
            self._emit(Opcode.RESTART)
        elif isinstance(statement, ExitThread):
            self._emit(Opcode.EXIT)
        elif isinstance(statement, Primitive):
            token = statement.token if statement.token is not None else self._allocate_token()
            self._emit(Opcode.SUSPEND, statement, token)
        elif isinstance(statement, Do):
            self._emit(Opcode.ACTION, statement.action)
        elif isinstance(statement, When):
            branch = self._emit(Opcode.BRANCH, statement.condition)
            self._compile_block(statement.then)
            if statement.orelse:
                skip = self._emit(Opcode.JUMP)
                self._patch(branch, len(self.instructions))
                self._compile_block(statement.orelse)
                self._patch(skip, len(self.instructions))
            else:
                self._patch(branch, len(self.instructions))
        elif isinstance(statement, LoopWhile):
            start = len(self.instructions)
            branch = self._emit(Opcode.BRANCH, statement.condition)
            self._compile_block(statement.body)
            jump = self._emit(Opcode.JUMP)
            self._patch(jump, start)
            self._patch(branch, len(self.instructions))
        elif callable(statement) or isinstance(statement, str):
            raise ThreadDefinitionError(
                f"{self.owner}: 语句 {statement!r} 需要用 do() 包装"
            )
        else:
            raise ThreadDefinitionError(f"{self.owner}: 无法识别的语句 {statement!r}")


def compile_body(statements: Sequence[Any], owner: str = "<body>") -> Program:
    """编译 body，token 重复或语句非法时抛出 ThreadDefinitionError"""
    return _BodyCompiler(owner).compile(statements)


class ProgramThread(Protothread):
    """
    声明式执行单元

    子类通过类属性 ``body`` 声明语句序列，类定义时即完成编译与 token 校验。
    """

    body: Sequence[Any] = ()
    program: Program = compile_body((), "ProgramThread")
    budget: StepBudget = DEFAULT_BUDGET

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if "body" in cls.__dict__:
            cls.program = compile_body(cls.body, owner=cls.__qualname__)

    def __init__(
        self,
        name: Optional[str] = None,
        logger: Optional[UnifiedLogger] = None,
        budget: Optional[StepBudget] = None,
    ):
        super().__init__(name=name, logger=logger)
        if budget is not None:
            self.budget = budget

    def step(self) -> bool:
        if self.position == TERMINATED:
            return self._reassert_terminated()

        self._enter_step()
        try:
            return self.program.run(self, self.budget)
        finally:
            self._leave_step()
