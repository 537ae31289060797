# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Implements a RestFSError class that is used to signal backend and staging errors.

Every error carries an explicit :class:`ErrorKind`, so adding context (see
:meth:`RestFSError.wrap`) never changes whether an error means 'not found'::

    try:
        info = api.stat(name)
    except Exception as e:
        raise as_rest_error(e, "error while opening file") from e
"""

from enum import Enum

__docformat__ = "reStructuredText"


class ErrorKind(Enum):
    #: The object does not exist on the backend
    NOT_FOUND = "not found"
    #: Any other backend failure (network, permission, malformed response)
    BACKEND = "backend failure"
    #: The local staging buffer could not be allocated or written
    LOCAL_STAGING = "local staging failure"
    #: Bad call, e.g. a seek to a negative offset
    INVALID_ARGUMENT = "invalid argument"


# ========================================================================
# RestFSError
# ========================================================================


class RestFSError(Exception):
    """General error class that is used to signal REST file system errors."""

    def __init__(self, kind, context_info=None, src_exception=None):
        assert isinstance(kind, ErrorKind), f"{kind!r}"
        super().__init__(kind, context_info)
        self.kind = kind
        self.context_info = context_info
        self.src_exception = src_exception

    def __repr__(self):
        return f"RestFSError({self.get_user_info()})"

    def __str__(self):
        return self.get_user_info()

    @property
    def is_not_found(self):
        return self.kind is ErrorKind.NOT_FOUND

    def get_user_info(self):
        """Return readable string."""
        s = self.kind.value
        if self.context_info:
            s = f"{self.context_info}: {s}"
        if self.src_exception:
            s += f" ({self.src_exception})"
        return s

    def wrap(self, context_info):
        """Return a new error of the same kind with `context_info` prepended."""
        if self.context_info:
            context_info = f"{context_info}: {self.context_info}"
        return RestFSError(self.kind, context_info, self.src_exception)


def as_rest_error(e, context_info=None):
    """Convert any exception to a RestFSError, adding optional context.

    ``FileNotFoundError`` becomes NOT_FOUND, anything else not already a
    RestFSError becomes BACKEND.
    """
    if isinstance(e, RestFSError):
        return e.wrap(context_info) if context_info else e
    if isinstance(e, FileNotFoundError):
        return RestFSError(ErrorKind.NOT_FOUND, context_info, src_exception=e)
    return RestFSError(ErrorKind.BACKEND, context_info, src_exception=e)


def is_not_found(e):
    """Return True if `e` signals an absent object (wrapped or not)."""
    if isinstance(e, RestFSError):
        return e.is_not_found
    return isinstance(e, FileNotFoundError)
