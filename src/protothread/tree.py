"""执行单元父子树的遍历与校验工具。"""

from __future__ import annotations

from typing import Dict, Iterator, List, Set, Tuple

from .thread import Protothread
from .types import ThreadTreeError


def iter_thread_tree(root: Protothread) -> Iterator[Tuple[int, Protothread]]:
    """深度优先遍历 (depth, unit)，不做校验。"""

    stack = [(0, root)]
    while stack:
        depth, unit = stack.pop()
        yield depth, unit
        children = list(unit.children())
        for child in reversed(children):
            stack.append((depth + 1, child))


def validate_thread_tree(root: Protothread) -> None:
    """校验独占所有权：任一单元只能有一个父单元，且不存在环。"""

    owners: Dict[int, Protothread] = {}
    active: Set[int] = set()

    def visit(unit: Protothread, parent: Protothread) -> None:
        key = id(unit)
        if key in active:
            raise ThreadTreeError(f"执行单元 {unit.name} 形成环", thread=unit)
        if key in owners:
            raise ThreadTreeError(
                f"执行单元 {unit.name} 同时被 {owners[key].name} 与 {parent.name} 持有",
                thread=unit,
            )
        owners[key] = parent
        active.add(key)
        for child in unit.children():
            visit(child, unit)
        active.discard(key)

    active.add(id(root))
    for child in root.children():
        visit(child, root)


def thread_tree_to_json(root: Protothread) -> dict:
    """将整棵树转换为日志友好的嵌套字典，先做所有权校验。"""

    validate_thread_tree(root)

    def build(unit: Protothread) -> dict:
        payload = unit.to_dict()
        payload["children"] = [build(child) for child in unit.children()]
        return payload

    return build(root)


def thread_tree_summary(root: Protothread) -> List[str]:
    """每行一个单元，按深度缩进。"""

    validate_thread_tree(root)
    return [
        f"{'  ' * depth}{unit.name}: {unit.state.value}@{unit.position}"
        for depth, unit in iter_thread_tree(root)
    ]
