"""
父子组合测试 - wait_thread / spawn
"""

import pytest

from protothread import (
    GeneratorThread,
    ProgramThread,
    ReentrantStepError,
    ThreadState,
    do,
    loop_while,
    run_until_done,
    spawn,
    wait_thread,
    wait_until,
    yield_,
)


class Child(ProgramThread):
    """等待 go 后结束，并消费 go"""

    body = [
        do(lambda t: setattr(t, "runs", t.runs + 1)),
        wait_until("go"),
        do(lambda t: setattr(t, "go", False)),
        do(lambda t: setattr(t, "done", t.done + 1)),
    ]

    def __init__(self):
        super().__init__()
        self.runs = 0
        self.done = 0
        self.go = False


class SpawnTwice(ProgramThread):
    body = [
        spawn("child"),
        do(lambda t: t.log.append("first")),
        spawn("child"),
        do(lambda t: t.log.append("second")),
    ]

    def __init__(self):
        super().__init__()
        self.child = Child()
        self.log = []


def test_two_consecutive_spawns_run_child_from_scratch():
    parent = SpawnTwice()

    assert parent.step() is True
    assert parent.child.runs == 1

    parent.child.go = True
    assert parent.step() is True
    assert parent.log == ["first"]
    assert parent.child.runs == 2
    assert parent.child.done == 1

    parent.child.go = True
    assert parent.step() is False
    assert parent.log == ["first", "second"]
    assert parent.child.done == 2
    assert parent.child.state == ThreadState.TERMINATED


def test_spawn_restarts_suspended_child():
    parent = SpawnTwice()
    parent.child.step()
    assert parent.child.state == ThreadState.SUSPENDED
    assert parent.child.runs == 1

    parent.step()
    assert parent.child.runs == 2


def test_spawn_restarts_terminated_child():
    parent = SpawnTwice()
    parent.child.stop()

    assert parent.step() is True
    assert parent.child.runs == 1
    assert parent.child.is_running()


class Counter(ProgramThread):
    body = [
        loop_while(lambda t: t.n < 3, [
            do(lambda t: setattr(t, "n", t.n + 1)),
            yield_(),
        ]),
    ]

    def __init__(self):
        super().__init__()
        self.n = 0


class Waiter(ProgramThread):
    body = [wait_thread("child"), do(lambda t: setattr(t, "finished", True))]

    def __init__(self, child):
        super().__init__()
        self.child = child
        self.finished = False


def test_wait_thread_advances_child_once_per_parent_call():
    parent = Waiter(Counter())
    observed = []
    while parent.step():
        observed.append(parent.child.n)
    assert observed == [1, 2, 3]
    assert parent.finished


def test_wait_thread_on_terminated_child_falls_through():
    child = Counter()
    child.stop()
    parent = Waiter(child)
    assert parent.step() is False
    assert parent.finished
    assert child.n == 0


def test_nested_tree_steps_transitively():
    root = Waiter(Waiter(Counter()))
    assert run_until_done(root) == 4
    assert root.finished and root.child.finished
    assert root.child.child.n == 3


def test_generator_parent_with_program_child():
    class Parent(GeneratorThread):
        def __init__(self):
            super().__init__()
            self.child = Child()
            self.log = []

        def run(self):
            yield spawn(self.child)
            self.log.append("first")
            yield spawn(lambda t: t.child)
            self.log.append("second")

    parent = Parent()
    assert parent.step() is True
    parent.child.go = True
    assert parent.step() is True
    parent.child.go = True
    assert parent.step() is False
    assert parent.log == ["first", "second"]
    assert parent.child.runs == 2


def test_waiting_on_self_is_rejected():
    unit = Waiter(None)
    unit.child = unit
    with pytest.raises(ReentrantStepError):
        unit.step()


def test_child_reference_must_be_steppable():
    unit = Waiter(object())
    with pytest.raises(TypeError):
        unit.step()
