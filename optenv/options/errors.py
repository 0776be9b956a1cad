"""
Exception types for option parsing and environment resolution.

Every adapter and the merge engine fail with one of these; callers that only
care whether the configuration could be resolved catch OptionsError.
"""


class OptionsError(Exception):
    """Base exception for option resolution errors."""
    pass


class BadValue(OptionsError):
    """Malformed input: bad syntax, type mismatch, unknown or duplicate key."""
    pass


class InternalError(OptionsError):
    """Broken bookkeeping inside the options subsystem, or an unreadable file."""
    pass


class TypeMismatch(BadValue):
    """A Value was read back as a type other than the one it holds."""
    pass


class NoSuchKey(OptionsError, KeyError):
    """Requested key is not present in an Environment."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""
