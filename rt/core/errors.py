"""Exceptions raised by the race engine.

Every mutation checks its preconditions before touching state, so when one of
these propagates the session is exactly as it was before the call. The UI
catches ``RaceTimerError`` and shows ``str(exc)`` to the user.
"""


class RaceTimerError(Exception):
    """Base class for every refused race operation."""


# -- validation --

class InvalidNameError(RaceTimerError):
    pass


class NoNamesFoundError(RaceTimerError):
    pass


# -- precondition --

class ClockNotRunningError(RaceTimerError):
    pass


class RunnerFinishedError(RaceTimerError):
    pass


class TimingInProgressError(RaceTimerError):
    pass


# -- not found --

class RunnerNotFoundError(RaceTimerError):
    def __init__(self, runner_id):
        super().__init__(f"Runner {runner_id} does not exist")
        self.runner_id = runner_id


class SplitNotFoundError(RaceTimerError):
    def __init__(self, runner_id, split_uid):
        super().__init__(f"Split {split_uid} not found for runner {runner_id}")
        self.runner_id = runner_id
        self.split_uid = split_uid


# -- external service --

class AnalysisError(RaceTimerError):
    pass
