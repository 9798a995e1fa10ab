import signal
from enum import IntEnum
from collections import namedtuple
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mcwrap.config import WrapperSettings


class ShutdownStage(IntEnum):
    """Ordered shutdown force levels. A sequence only ever moves forward."""
    NONE = 0
    GRACEFULLY_STOPPING = 1  # Send the console stop command.
    STOPPING = 2             # SIGTERM, ask for a faster shutdown.
    KILLING = 3              # SIGKILL.

    @property
    def is_terminal(self) -> bool:
        return self is ShutdownStage.KILLING


ACTION_WRITE = "write"
ACTION_SIGNAL = "signal"

# kind: ACTION_WRITE or ACTION_SIGNAL
# payload: the command text for writes, the signal number for signals
# wait: seconds until the next re-attempt, None when nothing follows
StageAction = namedtuple('StageAction', ['stage', 'kind', 'payload', 'wait'])


def stage_action(stage: ShutdownStage, settings: "WrapperSettings") -> StageAction:
    """
    Maps a shutdown stage to the action it performs and the wait that follows it.

    :param stage: The stage being entered. Must not be `ShutdownStage.NONE`.
    :param settings: Effective settings providing the command and wait values.
    :return StageAction: The action for the stage.
    :raises ValueError: For `ShutdownStage.NONE`, which has no action.
    """
    if stage is ShutdownStage.GRACEFULLY_STOPPING:
        return StageAction(stage, ACTION_WRITE, settings.SHUTDOWN_CMD, settings.SHUTDOWN_WAIT)
    if stage is ShutdownStage.STOPPING:
        return StageAction(stage, ACTION_SIGNAL, signal.SIGTERM, settings.TERM_WAIT)
    if stage is ShutdownStage.KILLING:
        return StageAction(stage, ACTION_SIGNAL, signal.SIGKILL, None)
    raise ValueError(f"Stage {stage.name} has no shutdown action.")
