# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Random access file handle on top of a whole-object REST backend.

A :class:`RestFile` is returned by :meth:`RestFileSystem.open_file()
<restdav.rest_fs.RestFileSystem.open_file>` and represents one open/close
session.

Content is staged lazily: opening, seeking and ``stat()`` never fetch the
remote object. The first ``read()`` or ``write()`` allocates a local staging
buffer (see :mod:`restdav.staging`) and, unless the object is new or was opened
with ``O_TRUNC``, copies the whole remote content into it. From then on all
access is served by the buffer.

``close()`` releases the buffer and, depending on how the handle was opened,
uploads the content::

    existed at open   write access   backend call on close
    ---------------   ------------   ---------------------
    no                any            new_file(staged content or b"")
    yes               yes            update(staged content)
    yes               no             (none)

All calls on one handle are serialized by a per-handle lock. Handles never
share buffers, so two handles on the same object race on the backend
(last close wins).
"""

import io
import os
import threading

from restdav import util
from restdav.file_info import DirEntry, NewFileInfo
from restdav.rest_error import ErrorKind, RestFSError, as_rest_error

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)

BUFFER_SIZE = 8192

_ACCESS_MODE = os.O_RDONLY | os.O_WRONLY | os.O_RDWR


# ========================================================================
# Content states
# ========================================================================
class _Unmaterialized:
    """No local copy yet; the position is tracked arithmetically."""

    __slots__ = ("pos",)

    def __init__(self, pos=0):
        self.pos = pos


class _Staged:
    """Content lives in a local buffer that also owns the position."""

    __slots__ = ("buffer",)

    def __init__(self, buffer):
        self.buffer = buffer


def _resolve_seek(offset, whence, current, get_end):
    if whence == os.SEEK_SET:
        pos = offset
    elif whence == os.SEEK_CUR:
        pos = current + offset
    elif whence == os.SEEK_END:
        pos = get_end() + offset
    else:
        raise RestFSError(ErrorKind.INVALID_ARGUMENT, f"seek: invalid whence {whence!r}")
    if pos < 0:
        raise RestFSError(ErrorKind.INVALID_ARGUMENT, f"seek: negative position {pos}")
    return pos


# ========================================================================
# RestFile
# ========================================================================
class RestFile:
    """File handle for one object of a :class:`~restdav.rest_fs.RestFileSystem`.

    Args:
        fs (RestFileSystem): the file system that opened this handle
        name (str): normalized object name
        flags (int): ``os.O_...`` flags passed to ``open_file()``
        perm (int): permission bits passed to ``open_file()``
        exists (bool): False if the object did not exist remotely at open time
        is_dir (bool): True if the object is a collection
    """

    def __init__(self, fs, name, flags, perm, *, exists, is_dir=False):
        self.fs = fs
        self.name = name
        self.flags = flags
        self.perm = perm
        self.exists = exists
        self.is_dir = is_dir
        self._lock = threading.Lock()
        self._state = _Unmaterialized()
        self._closed = False
        self._flushed = False

    def __repr__(self):
        state = "staged" if self.is_staged else "unmaterialized"
        if self._closed:
            state = "closed"
        return f"{self.__class__.__name__}({self.name!r}, flags={self.flags:#o}, {state})"

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    @property
    def closed(self):
        return self._closed

    @property
    def is_staged(self):
        return isinstance(self._state, _Staged)

    def readable(self):
        return (self.flags & _ACCESS_MODE) in (os.O_RDONLY, os.O_RDWR)

    def writable(self):
        return (self.flags & _ACCESS_MODE) in (os.O_WRONLY, os.O_RDWR)

    def seekable(self):
        return True

    def _check_usable(self, op):
        if self._closed:
            raise ValueError(f"I/O operation on closed file {self.name!r}")
        if self.is_dir and op in ("read", "write"):
            raise RestFSError(
                ErrorKind.INVALID_ARGUMENT, f"cannot {op} collection {self.name!r}"
            )
        if op == "read" and not self.readable():
            raise RestFSError(
                ErrorKind.INVALID_ARGUMENT, f"{self.name!r} not open for reading"
            )
        if op == "write" and not self.writable():
            raise RestFSError(
                ErrorKind.INVALID_ARGUMENT, f"{self.name!r} not open for writing"
            )

    # --- Metadata -----------------------------------------------------------

    def _is_pending_creation(self):
        return not self.exists and not self._flushed and bool(self.flags & os.O_CREAT)

    def stat(self):
        """Return metadata of the object.

        Objects that were opened with ``O_CREAT`` and do not exist remotely
        yet report a :class:`~restdav.file_info.NewFileInfo`.
        """
        if self._is_pending_creation():
            return NewFileInfo(util.get_base_name(self.name), self.perm)
        return self.fs.stat(self.name)

    def size(self):
        """Return the size of the remote object (0 if it was not created yet)."""
        if not self.exists and not self._flushed:
            return 0
        return self.fs.stat(self.name).size

    def readdir(self, count=0):
        """Return metadata of all members of this collection.

        Note: `count` is accepted for compatibility but not honored; the
        complete listing is always returned in one call.
        """
        return self.fs.get_children(self.name)

    def read_dir(self, count=0):
        """Like :meth:`readdir`, but return sorted :class:`DirEntry` objects."""
        infos = self.readdir(count)
        return sorted((DirEntry.from_info(i) for i in infos), key=lambda e: e.name)

    # --- Positioning --------------------------------------------------------

    def seek(self, offset, whence=os.SEEK_SET):
        """Change the position; returns the new absolute position.

        Before the content is staged this is pure arithmetic (``SEEK_END``
        costs one ``stat`` call) and never fetches content.
        """
        with self._lock:
            self._check_usable("seek")
            state = self._state
            if isinstance(state, _Staged):
                buffer = state.buffer

                def _get_end():
                    current = buffer.tell()
                    end = buffer.seek(0, os.SEEK_END)
                    buffer.seek(current)
                    return end

                try:
                    pos = _resolve_seek(offset, whence, buffer.tell(), _get_end)
                    return buffer.seek(pos)
                except OSError as e:
                    raise RestFSError(
                        ErrorKind.LOCAL_STAGING, "seek failed", src_exception=e
                    ) from e

            state.pos = _resolve_seek(offset, whence, state.pos, self.size)
            return state.pos

    def tell(self):
        with self._lock:
            self._check_usable("tell")
            state = self._state
            if isinstance(state, _Staged):
                return state.buffer.tell()
            return state.pos

    # --- Read / write -------------------------------------------------------

    def _fetch_into(self, buffer):
        """Copy the remote content into `buffer` and return the byte count."""
        try:
            src = self.fs.api.get_content(self.name)
        except Exception as e:
            raise as_rest_error(e, f"cannot fetch {self.name!r}") from e
        size = 0
        try:
            while True:
                try:
                    chunk = src.read(BUFFER_SIZE)
                except Exception as e:
                    raise as_rest_error(e, f"cannot fetch {self.name!r}") from e
                if not chunk:
                    break
                buffer.write(chunk)
                size += len(chunk)
        finally:
            src.close()
        return size

    def _get_buffer(self):
        """Return the staging buffer, staging the content on first use.

        Must be called with the lock held.
        """
        state = self._state
        if isinstance(state, _Staged):
            return state.buffer

        buffer = self.fs.staging.create(self.name)
        try:
            size = 0
            if self.exists and not self.flags & os.O_TRUNC:
                size = self._fetch_into(buffer)
            pos = size if self.flags & os.O_APPEND else state.pos
            buffer.seek(pos)
        except OSError as e:
            buffer.close()
            raise RestFSError(
                ErrorKind.LOCAL_STAGING,
                f"cannot stage {self.name!r}",
                src_exception=e,
            ) from e
        except BaseException:
            buffer.close()
            raise

        _logger.debug(f"Staged {self.name!r} ({size} bytes, pos={pos})")
        self._state = _Staged(buffer)
        return buffer

    def read(self, size=-1):
        """Read up to `size` bytes (all remaining bytes if `size` < 0)."""
        with self._lock:
            self._check_usable("read")
            buffer = self._get_buffer()
            try:
                return buffer.read(-1 if size is None else size)
            except OSError as e:
                raise RestFSError(
                    ErrorKind.LOCAL_STAGING, "read failed", src_exception=e
                ) from e

    def readinto(self, b):
        """Read into the pre-allocated buffer `b`; returns the byte count."""
        data = self.read(len(b))
        n = len(data)
        b[:n] = data
        return n

    def write(self, data):
        """Write `data` at the current position; returns the byte count.

        In ``O_APPEND`` mode data is always appended.
        """
        with self._lock:
            self._check_usable("write")
            buffer = self._get_buffer()
            try:
                if self.flags & os.O_APPEND:
                    buffer.seek(0, os.SEEK_END)
                return buffer.write(data)
            except OSError as e:
                raise RestFSError(
                    ErrorKind.LOCAL_STAGING, "write failed", src_exception=e
                ) from e

    # --- Close --------------------------------------------------------------

    def _flush(self, buffer):
        """Upload the content if required (see module docstring)."""
        if buffer is not None:
            buffer.seek(0)

        if not self.exists:
            stream = buffer if buffer is not None else io.BytesIO(b"")
            self.fs.new_file(self.name, stream)
            _logger.debug(f"Created {self.name!r}")
        elif self.writable() and not self.is_dir:
            if buffer is not None:
                stream = buffer
            elif self.flags & os.O_TRUNC:
                stream = io.BytesIO(b"")
            else:
                # Nothing was written: keep the remote content
                return
            self.fs.update(self.name, stream)
            _logger.debug(f"Updated {self.name!r}")
        else:
            return
        self._flushed = True

    def _release(self, buffer, *, raise_errors):
        try:
            buffer.close()
        except OSError as e:
            _logger.error(f"Could not release staging buffer of {self.name!r}: {e}")
            if raise_errors:
                raise RestFSError(
                    ErrorKind.LOCAL_STAGING, "cannot release tmp file", src_exception=e
                ) from e

    def close(self):
        """Flush content to the backend and release the staging buffer.

        The buffer is released on every exit path. A failed upload is raised
        even if releasing the buffer fails too.
        Calling close() on a closed handle is a no-op.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            state = self._state
            buffer = state.buffer if isinstance(state, _Staged) else None
            flushed = False
            try:
                self._flush(buffer)
                flushed = True
            finally:
                if buffer is not None:
                    self._release(buffer, raise_errors=flushed)

    def discard(self):
        """Release the staging buffer without uploading anything.

        Used when a write was aborted. The handle is closed afterwards;
        calling discard() or close() again is a no-op.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            state = self._state
            if isinstance(state, _Staged):
                _logger.debug(f"Discarding staged content of {self.name!r}")
                self._release(state.buffer, raise_errors=False)
