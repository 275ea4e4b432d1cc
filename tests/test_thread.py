"""
执行单元生命周期测试
"""

import logging

import pytest

from protothread import (
    NOT_STARTED,
    TERMINATED,
    ProgramThread,
    ReentrantStepError,
    ThreadState,
    do,
    wait_until,
)


class TwoWaits(ProgramThread):
    """wait-until(A) -> wait-until(B) -> end"""

    body = [
        wait_until("a"),
        do(lambda t: t.log.append("after a")),
        wait_until("b"),
        do(lambda t: t.log.append("after b")),
    ]

    def __init__(self):
        super().__init__()
        self.a = False
        self.b = False
        self.log = []


class RecordingObserver:
    """记录生命周期事件"""

    def __init__(self):
        self.events = []

    def on_thread_restarted(self, unit):
        self.events.append(("restarted", unit.position))

    def on_thread_suspended(self, unit):
        self.events.append(("suspended", unit.position))

    def on_thread_terminated(self, unit):
        self.events.append(("terminated", unit.position))


def test_new_unit_is_running_and_not_started():
    unit = TwoWaits()
    assert unit.position == NOT_STARTED
    assert unit.state == ThreadState.NOT_STARTED
    assert unit.is_running()


def test_two_waits_scenario():
    """A=false,B=false -> True; A=true -> True; A=B=true -> False"""
    unit = TwoWaits()

    assert unit.step() is True
    assert unit.log == []
    assert unit.state == ThreadState.SUSPENDED

    unit.a = True
    assert unit.step() is True
    assert unit.log == ["after a"]
    assert unit.position == TwoWaits.program.tokens[1]

    unit.b = True
    assert unit.step() is False
    assert unit.log == ["after a", "after b"]
    assert not unit.is_running()
    assert unit.state == ThreadState.TERMINATED


def test_terminated_step_is_idempotent_noop():
    unit = TwoWaits()
    unit.a = unit.b = True
    assert unit.step() is False

    for _ in range(3):
        assert unit.step() is False
        assert not unit.is_running()
    assert unit.log == ["after a", "after b"]


def test_restart_returns_to_body_start():
    unit = TwoWaits()
    unit.a = True
    unit.step()
    assert unit.log == ["after a"]

    unit.restart()
    assert unit.position == NOT_STARTED
    assert unit.is_running()
    # restart 本身不执行 body
    assert unit.log == ["after a"]

    unit.step()
    assert unit.log == ["after a", "after a"]


def test_restart_revives_terminated_unit():
    unit = TwoWaits()
    unit.stop()
    assert unit.step() is False

    unit.restart()
    assert unit.is_running()
    unit.a = unit.b = True
    assert unit.step() is False
    assert unit.log == ["after a", "after b"]


def test_stop_is_immediate_and_idempotent():
    unit = TwoWaits()
    unit.step()
    unit.stop()
    unit.stop()
    assert unit.position == TERMINATED
    unit.a = unit.b = True
    assert unit.step() is False
    assert unit.log == []


def test_observer_receives_lifecycle_events():
    unit = TwoWaits()
    observer = RecordingObserver()
    unit.add_observer(observer)

    unit.step()
    unit.a = True
    unit.step()
    unit.b = True
    unit.step()
    unit.stop()
    unit.restart()

    first, second = TwoWaits.program.tokens
    assert observer.events == [
        ("suspended", first),
        ("suspended", second),
        ("terminated", TERMINATED),
        ("restarted", NOT_STARTED),
    ]

    unit.remove_observer(observer)
    unit.step()
    assert len(observer.events) == 4


def test_broken_observer_does_not_interrupt_unit():
    class Broken:
        def on_thread_suspended(self, unit):
            raise RuntimeError("boom")

    unit = TwoWaits()
    unit.add_observer(Broken())
    assert unit.step() is True


def test_reentrant_step_is_rejected():
    class SelfStepper(ProgramThread):
        body = [do(lambda t: t.step())]

    unit = SelfStepper()
    with pytest.raises(ReentrantStepError):
        unit.step()
    # 异常后守卫已复位
    assert unit._executing is False


def test_to_dict_and_repr():
    unit = TwoWaits()
    unit.step()
    payload = unit.to_dict()
    assert payload == {
        "name": "TwoWaits",
        "type": "TwoWaits",
        "position": TwoWaits.program.tokens[0],
        "state": "suspended",
    }
    assert "TwoWaits" in repr(unit)


def test_transitions_are_logged_at_debug(caplog):
    caplog.set_level(logging.DEBUG, logger="protothread")
    unit = TwoWaits()
    unit.step()
    unit.stop()
    messages = [record.getMessage() for record in caplog.records]
    assert any("suspended at" in message for message in messages)
    assert any("terminated" in message for message in messages)
