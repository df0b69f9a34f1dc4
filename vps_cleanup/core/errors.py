"""Exception types for vps-cleanup."""


class CleanupError(Exception):
    """Base class for every error raised by vps-cleanup."""


class PreconditionError(CleanupError):
    """Fatal: the run must stop before anything is touched."""

    exit_code = 1


class NotRootError(PreconditionError):
    pass


class UnsupportedDistroError(PreconditionError):
    pass


class CommandError(CleanupError):
    """A command failed and the caller asked for the failure to be fatal."""

    def __init__(self, result):
        self.result = result
        super().__init__(f"{result.command_line()}: {result.message or f'exit code {result.returncode}'}")
