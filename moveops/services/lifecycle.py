"""
Move execution state machine.

    pending -> in_progress -> paused <-> in_progress -> completed
                               paused ---------------> completed

completed is terminal. Anything not listed in TRANSITIONS is rejected with
IllegalTransition before a single row is written.
"""

from enum import Enum

from moveops.error import IllegalTransition
from moveops.schemas import ExecutionStatus, PauseAction


class ExecutionEvent(str, Enum):
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    COMPLETE = "complete"


TRANSITIONS: dict[tuple[ExecutionStatus, ExecutionEvent], ExecutionStatus] = {
    (ExecutionStatus.PENDING, ExecutionEvent.START): ExecutionStatus.IN_PROGRESS,
    (ExecutionStatus.IN_PROGRESS, ExecutionEvent.PAUSE): ExecutionStatus.PAUSED,
    (ExecutionStatus.PAUSED, ExecutionEvent.RESUME): ExecutionStatus.IN_PROGRESS,
    (ExecutionStatus.IN_PROGRESS, ExecutionEvent.COMPLETE): ExecutionStatus.COMPLETED,
    (ExecutionStatus.PAUSED, ExecutionEvent.COMPLETE): ExecutionStatus.COMPLETED,
}

ACTIVE_STATUSES = (
    ExecutionStatus.PENDING,
    ExecutionStatus.IN_PROGRESS,
    ExecutionStatus.PAUSED,
)

# statuses in which a crew is on the job
RUNNING_STATUSES = (ExecutionStatus.IN_PROGRESS, ExecutionStatus.PAUSED)


def can_transition(current: ExecutionStatus | str, event: ExecutionEvent) -> bool:
    return (ExecutionStatus(current), event) in TRANSITIONS


def transition(current: ExecutionStatus | str, event: ExecutionEvent) -> ExecutionStatus:
    """
    Return the status reached by applying `event` to `current`.

    Raises:
        IllegalTransition: if the event is not allowed from `current`
    """
    current = ExecutionStatus(current)
    try:
        return TRANSITIONS[(current, event)]
    except KeyError:
        raise IllegalTransition(
            f"cannot {event.value} an execution that is {current.value}"
        ) from None


def event_for(action: PauseAction) -> ExecutionEvent:
    return ExecutionEvent.PAUSE if action == PauseAction.PAUSE else ExecutionEvent.RESUME
