"""Status lifecycle for analysis targets.

A target starts ``queued``. Starting a job moves it to ``running``; the job
ends in ``done`` or ``error``. Either end state may be started again, which
reruns the full pipeline and replaces the previous results.
"""

from typing import Optional, Union

from webanalyzer.exceptions import InvalidStatusTransition, MissingErrorMessage
from webanalyzer.models import AnalysisStatus

ALLOWED_TRANSITIONS = {
    AnalysisStatus.QUEUED: frozenset({AnalysisStatus.RUNNING}),
    AnalysisStatus.RUNNING: frozenset({AnalysisStatus.DONE, AnalysisStatus.ERROR}),
    AnalysisStatus.DONE: frozenset({AnalysisStatus.RUNNING}),
    AnalysisStatus.ERROR: frozenset({AnalysisStatus.RUNNING}),
}

# States from which a job may be started
STARTABLE_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items()
    if AnalysisStatus.RUNNING in targets
)


def as_status(value: Union[str, AnalysisStatus]) -> AnalysisStatus:
    """Coerce a stored status string into an AnalysisStatus."""
    return value if isinstance(value, AnalysisStatus) else AnalysisStatus(value)


def can_transition(current: Union[str, AnalysisStatus], new: Union[str, AnalysisStatus]) -> bool:
    return as_status(new) in ALLOWED_TRANSITIONS[as_status(current)]


def check_transition(current: Union[str, AnalysisStatus], new: Union[str, AnalysisStatus]) -> AnalysisStatus:
    """Validate a status change.

    Returns:
        The new status

    Raises:
        InvalidStatusTransition: If the lifecycle does not allow the change
    """
    current, new = as_status(current), as_status(new)
    if new not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransition(current.value, new.value)
    return new


def check_error_message(status: AnalysisStatus, error_message: Optional[str]) -> Optional[str]:
    """Enforce that an error message is present exactly when status is ``error``."""
    if status == AnalysisStatus.ERROR:
        if not error_message or not error_message.strip():
            raise MissingErrorMessage()
        return error_message
    return None
