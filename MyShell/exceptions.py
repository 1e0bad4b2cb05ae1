"""
Error taxonomy for the shell.

Everything derived from ShellError is confined to the statement that raised
it: the read-execute loop reports it and moves on to the next statement.
ShellExit is the only exception allowed to leave run_line().
"""


class ShellError(Exception):
    """
    Base class for statement-level failures.

    Attributes:
        message: Human-readable error description
        syscall: Name of the failing system call, if any
    """

    def __init__(self, message, syscall=None):
        super().__init__(message)
        self.message = message
        self.syscall = syscall

    def __str__(self):
        if self.syscall:
            return f"{self.syscall}: {self.message}"
        return self.message


class LaunchError(ShellError):
    """A pipeline could not be started (fork/spawn failure)."""


class PipeCreationError(LaunchError):
    """An inter-process pipe could not be allocated."""

    def __init__(self, message):
        super().__init__(message, syscall="pipe")


class JobLimitError(ShellError):
    """The background job table is full."""

    def __init__(self, limit):
        super().__init__(f"too many background jobs (limit {limit})")
        self.limit = limit


class ShellExit(Exception):
    """Raised by the exit builtin to stop the read-execute loop."""

    def __init__(self, code=0):
        super().__init__(code)
        self.code = code
