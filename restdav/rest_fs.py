# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Hierarchical file system facade over a :class:`~restdav.rest_api.RestAPI`.

:class:`RestFileSystem` implements the directory level operations by
delegating to the backend, and hands out :class:`~restdav.rest_file.RestFile`
objects for random access::

    fs = RestFileSystem(MemoryAPI())
    with fs.open_file("/a.txt", os.O_WRONLY | os.O_CREAT) as f:
        f.write(b"hello")

Every backend failure is re-raised as
:class:`~restdav.rest_error.RestFSError` with context added. Not-found errors
keep their kind, so callers can implement 'open or create' logic::

    try:
        f = fs.open_file(name)
    except RestFSError as e:
        if not e.is_not_found:
            raise
        f = fs.open_file(name, os.O_RDWR | os.O_CREAT)
"""

import os

from restdav import util
from restdav.file_info import DirEntry
from restdav.rest_error import RestFSError, as_rest_error
from restdav.rest_file import RestFile
from restdav.staging import TempFileStaging

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


class RestFileSystem:
    """File system interface for a whole-object REST backend.

    Args:
        api (RestAPI): the backend
        staging (StagingProvider | None): allocates local buffers for open
            handles (default: ``TempFileStaging()``)
    """

    def __init__(self, api, *, staging=None):
        self.api = api
        if staging is None:
            staging = TempFileStaging()
        self.staging = staging

    def __repr__(self):
        return f"{self.__class__.__name__}({self.api!r}, staging={self.staging!r})"

    def _call(self, context_info, func, *args):
        try:
            return func(*args)
        except Exception as e:
            raise as_rest_error(e, context_info) from e

    # --- Directory operations -----------------------------------------------

    def get_children(self, name):
        """Return metadata of all members of collection `name`."""
        name = util.normalize_name(name)
        infos = self._call(f"cannot readdir {name!r}", self.api.get_children, name)
        return list(infos or [])

    def read_dir(self, name):
        """Return the members of collection `name` as :class:`DirEntry` list,
        sorted by name.
        """
        infos = self.get_children(name)
        return sorted((DirEntry.from_info(i) for i in infos), key=lambda e: e.name)

    def walk(self, top="/"):
        """Yield ``(collection_name, entries)`` for `top` and all sub collections
        (top-down).
        """
        top = util.normalize_name(top)
        entries = self.read_dir(top)
        yield top, entries
        for entry in entries:
            if entry.is_dir():
                yield from self.walk(util.join_name(top, entry.name))

    def mkdir(self, name, perm=0o777):
        name = util.normalize_name(name)
        _logger.debug(f"mkdir({name!r}, {perm:#o})")
        self._call(f"cannot mkdir {name!r}", self.api.mkdir, name, perm)

    def remove_all(self, name):
        name = util.normalize_name(name)
        _logger.debug(f"remove_all({name!r})")
        self._call(f"cannot remove {name!r}", self.api.remove_all, name)

    def rename(self, old_name, new_name):
        old_name = util.normalize_name(old_name)
        new_name = util.normalize_name(new_name)
        _logger.debug(f"rename({old_name!r}, {new_name!r})")
        self._call(
            f"cannot rename {old_name!r} to {new_name!r}",
            self.api.rename,
            old_name,
            new_name,
        )

    def stat(self, name):
        name = util.normalize_name(name)
        return self._call(f"cannot stat {name!r}", self.api.stat, name)

    def exists(self, name):
        """Return True if `name` exists on the backend."""
        try:
            self.stat(name)
        except RestFSError as e:
            if e.is_not_found:
                return False
            raise
        return True

    # --- Content transfer (used by RestFile.close) ---------------------------

    def new_file(self, name, stream):
        name = util.normalize_name(name)
        self._call(f"cannot create {name!r}", self.api.new_file, name, stream)

    def update(self, name, stream):
        name = util.normalize_name(name)
        self._call(f"cannot update {name!r}", self.api.update, name, stream)

    # --- Open ---------------------------------------------------------------

    def open_file(self, name, flags=os.O_RDONLY, perm=0o666):
        """Return a :class:`RestFile` for `name`.

        Only the metadata is looked up; content is fetched on first read or
        write. Raises a not-found RestFSError if `name` does not exist and
        ``os.O_CREAT`` is not part of `flags`.
        """
        name = util.normalize_name(name)
        info = None
        try:
            info = self.api.stat(name)
        except Exception as e:
            err = as_rest_error(e, f"error while opening file {name!r}")
            if not (err.is_not_found and flags & os.O_CREAT):
                raise err from e

        return RestFile(
            self,
            name,
            flags,
            perm,
            exists=info is not None,
            is_dir=bool(info is not None and info.is_dir),
        )

    def open(self, name):
        """Open `name` for reading."""
        return self.open_file(name, os.O_RDONLY, 0)
