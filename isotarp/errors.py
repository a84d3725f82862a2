"""Exceptions raised by isotarp."""


class IsotarpError(Exception):
    """Base class for all isotarp errors."""


class CommandFailedError(IsotarpError):
    """An external command could not be run or exited unsuccessfully."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Command failed: {detail}")
        self.detail = detail


class TarpaulinFailedError(IsotarpError):
    """A coverage run of a single test did not succeed."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Tarpaulin failed: {detail}")
        self.detail = detail