"""
Protothread - 轻量级无栈协作式执行单元

执行单元只保存一个位置值，每次 step() 直接跳回上次到达的挂起点继续执行，
不需要独立调用栈或线程上下文。

主要功能:
- Protothread 生命周期：restart / stop / is_running / step
- 挂起原语：wait_until / wait_while / yield_ / yield_until / wait_thread / spawn / restart_self / exit_thread
- 两种 body 写法：声明式 ProgramThread 与生成器 GeneratorThread
- 父子执行树的遍历与所有权校验
- 同步/异步参考驱动器
"""

# 主要API导出
from .types import (
    NOT_STARTED,
    TERMINATED,
    ThreadState,
    ProtothreadError,
    ThreadDefinitionError,
    ReentrantStepError,
    StepBudgetExceeded,
    ThreadTreeError,
)
from .common import ExecutionMode, StepBudget, UnifiedLogger
from .interfaces import Steppable, Condition, ThreadObserver
from .thread import Protothread
from .primitives import (
    wait_until,
    wait_while,
    yield_,
    yield_until,
    wait_thread,
    spawn,
    restart_self,
    exit_thread,
)
from .program import (
    ProgramThread,
    Program,
    compile_body,
    do,
    when,
    loop_while,
    loop_forever,
)
from .generator_thread import GeneratorThread
from .tree import iter_thread_tree, validate_thread_tree, thread_tree_to_json, thread_tree_summary
from .drivers import run_until_done, run_async
from . import examples

__version__ = "1.0.0"

__all__ = [
    # 执行单元
    "Protothread",
    "ProgramThread",
    "GeneratorThread",
    "Program",
    "compile_body",

    # 挂起原语与语句
    "wait_until",
    "wait_while",
    "yield_",
    "yield_until",
    "wait_thread",
    "spawn",
    "restart_self",
    "exit_thread",
    "do",
    "when",
    "loop_while",
    "loop_forever",

    # 状态与配置
    "NOT_STARTED",
    "TERMINATED",
    "ThreadState",
    "ExecutionMode",
    "StepBudget",
    "UnifiedLogger",

    # 协议接口
    "Steppable",
    "Condition",
    "ThreadObserver",

    # 父子树与驱动
    "iter_thread_tree",
    "validate_thread_tree",
    "thread_tree_to_json",
    "thread_tree_summary",
    "run_until_done",
    "run_async",

    # 示例模块
    "examples",

    # 异常
    "ProtothreadError",
    "ThreadDefinitionError",
    "ReentrantStepError",
    "StepBudgetExceeded",
    "ThreadTreeError",
]


def get_version() -> str:
    """获取版本信息"""
    return __version__
