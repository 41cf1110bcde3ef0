"""Errors raised by session and lap operations"""


class SessionError(ValueError):
    """Base class for operations that are not legal right now"""


class InvalidStateError(SessionError):
    """Operation not allowed in the current session state"""


class NoOpenLapError(SessionError):
    """Operation needs an open lap but none is running"""
