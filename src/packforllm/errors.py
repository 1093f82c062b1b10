"""
Exceptions raised by packforllm.

Per-entry problems met during a walk (unreadable ``.gitignore``, a directory
that cannot be listed, a file that does not decode) are not exceptions: they
are recorded as warnings on the :class:`~packforllm.trace.Trace` and the walk
carries on.
"""


class PackError(Exception): ...
class InvalidRootError(PackError): ...
class ConfigFileError(PackError): ...
class OutputError(PackError): ...
class WalkCancelled(PackError): ...


class EmptyResultError(PackError):
    """Nothing survived filtering; the caller decides how to tell the user."""

    def __init__(self, message: str = "No readable files found (all ignored or filtered).") -> None:
        super().__init__(message)
