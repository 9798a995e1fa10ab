import signal

import pytest

from mcwrap.config import WrapperSettings
from mcwrap.supervisor.stages import ACTION_SIGNAL, ACTION_WRITE, ShutdownStage, stage_action


def test_stages_are_ordered():
    assert ShutdownStage.NONE < ShutdownStage.GRACEFULLY_STOPPING < ShutdownStage.STOPPING < ShutdownStage.KILLING
    assert ShutdownStage.KILLING.is_terminal
    assert not ShutdownStage.STOPPING.is_terminal


def test_graceful_stage_writes_the_stop_command(settings):
    action = stage_action(ShutdownStage.GRACEFULLY_STOPPING, settings)

    assert action.kind == ACTION_WRITE
    assert action.payload == "stop"
    assert action.wait == 30


def test_stopping_stage_sends_sigterm(settings):
    action = stage_action(ShutdownStage.STOPPING, settings)

    assert action.kind == ACTION_SIGNAL
    assert action.payload == signal.SIGTERM
    assert action.wait == 30


def test_killing_stage_sends_sigkill_and_schedules_nothing(settings):
    action = stage_action(ShutdownStage.KILLING, settings)

    assert action.kind == ACTION_SIGNAL
    assert action.payload == signal.SIGKILL
    assert action.wait is None


def test_waits_come_from_configuration():
    settings = WrapperSettings(environ={
        "MCWRAP_SHUTDOWN_CMD": "save-all; stop",
        "MCWRAP_SHUTDOWN_WAIT": "12",
        "MCWRAP_TERM_WAIT": "4",
    })

    graceful = stage_action(ShutdownStage.GRACEFULLY_STOPPING, settings)
    stopping = stage_action(ShutdownStage.STOPPING, settings)

    assert graceful.payload == "save-all; stop"
    assert graceful.wait == 12
    assert stopping.wait == 4


def test_none_stage_has_no_action(settings):
    with pytest.raises(ValueError):
        stage_action(ShutdownStage.NONE, settings)
