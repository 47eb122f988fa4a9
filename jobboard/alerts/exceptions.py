"""Alert scheduler exceptions."""


class AlertSchedulerError(Exception):
    """Raised when a pass cannot fetch its candidate list.

    This is the only failure that aborts a whole pass. It propagates to the
    trigger (CLI or scheduler) so it can be surfaced and retried there.
    """

    def __init__(self, message: str, pass_name: str = ""):
        super().__init__(message)
        self.pass_name = pass_name
