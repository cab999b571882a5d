"""Exceptions raised by ossim."""


class ProcessNotFoundError(LookupError):
    """No process with the requested pid exists in the current table."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"process {pid} is no longer present")
        self.pid = pid
