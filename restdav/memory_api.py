# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
In-memory implementation of :class:`~restdav.rest_api.RestAPI`.

Objects are kept in a dictionary, keyed by normalized name. Collections are
stored with ``data=None``; the root collection '/' always exists::

    api = MemoryAPI({
        "/readme.txt": b"Hello, world!",
        "/docs": None,
        "/docs/guide.txt": b"A guide",
    })

Missing parent collections of the initial objects are created implicitly.

Every backend call is counted in ``api.calls`` (a ``collections.Counter``
keyed by method name), which makes this class handy for verifying how the
file system layer talks to the backend.

R/W access is guarded by a ``threading.RLock``.
"""

import io
import threading
import time
from collections import Counter
from hashlib import md5

from restdav import util
from restdav.file_info import FileInfo
from restdav.rest_api import RestAPI
from restdav.rest_error import ErrorKind, RestFSError

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


class _Entry:
    __slots__ = ("data", "mode", "ctime", "mtime")

    def __init__(self, data, mode):
        self.data = data
        self.mode = mode
        self.ctime = self.mtime = time.time()


def _parent(name):
    return name.rsplit("/", 1)[0] or "/"


class MemoryAPI(RestAPI):
    """Dictionary based REST backend."""

    def __init__(self, initial=None):
        self._lock = threading.RLock()
        self._store = {"/": _Entry(None, 0o777)}
        self.calls = Counter()
        for name, data in (initial or {}).items():
            self._add_initial(util.normalize_name(name), data)

    def __repr__(self):
        return f"{self.__class__.__name__}({len(self._store)} objects)"

    def _add_initial(self, name, data):
        parent = _parent(name)
        if parent not in self._store:
            self._add_initial(parent, None)
        if data is None:
            self._store[name] = _Entry(None, 0o777)
        else:
            self._store[name] = _Entry(util.to_bytes(data), 0o644)

    def _get(self, name):
        entry = self._store.get(name)
        if entry is None:
            raise RestFSError(ErrorKind.NOT_FOUND, name)
        return entry

    def _get_dir(self, name):
        entry = self._get(name)
        if entry.data is not None:
            raise NotADirectoryError(f"Not a collection: {name}")
        return entry

    def _info(self, name, entry):
        if entry.data is None:
            return FileInfo(
                name=util.get_base_name(name),
                mode=entry.mode,
                mtime=entry.mtime,
                is_dir=True,
                ctime=entry.ctime,
            )
        return FileInfo(
            name=util.get_base_name(name),
            size=len(entry.data),
            mode=entry.mode,
            mtime=entry.mtime,
            is_dir=False,
            ctime=entry.ctime,
            etag=md5(entry.data).hexdigest(),
        )

    def _member_names(self, name):
        prefix = name.rstrip("/") + "/"
        return [
            n
            for n in self._store
            if n != name and n.startswith(prefix) and "/" not in n[len(prefix) :]
        ]

    def _descendant_names(self, name):
        prefix = name.rstrip("/") + "/"
        return [n for n in self._store if n.startswith(prefix) and n != name]

    # --- RestAPI ------------------------------------------------------------

    def get_content(self, name):
        with self._lock:
            self.calls["get_content"] += 1
            name = util.normalize_name(name)
            entry = self._get(name)
            if entry.data is None:
                raise IsADirectoryError(f"Is a collection: {name}")
            return io.BytesIO(entry.data)

    def stat(self, name):
        with self._lock:
            self.calls["stat"] += 1
            name = util.normalize_name(name)
            return self._info(name, self._get(name))

    def get_children(self, name):
        with self._lock:
            self.calls["get_children"] += 1
            name = util.normalize_name(name)
            self._get_dir(name)
            return [self._info(n, self._store[n]) for n in self._member_names(name)]

    def mkdir(self, name, perm):
        with self._lock:
            self.calls["mkdir"] += 1
            name = util.normalize_name(name)
            if name in self._store:
                raise FileExistsError(f"Already exists: {name}")
            self._get_dir(_parent(name))
            self._store[name] = _Entry(None, perm)

    def update(self, name, stream):
        data = stream.read()
        with self._lock:
            self.calls["update"] += 1
            name = util.normalize_name(name)
            entry = self._get(name)
            if entry.data is None:
                raise IsADirectoryError(f"Is a collection: {name}")
            entry.data = bytes(data)
            entry.mtime = time.time()
            _logger.debug(f"update({name!r}): {len(data)} bytes")

    def new_file(self, name, stream):
        data = stream.read()
        with self._lock:
            self.calls["new_file"] += 1
            name = util.normalize_name(name)
            self._get_dir(_parent(name))
            entry = self._store.get(name)
            if entry is not None and entry.data is None:
                raise IsADirectoryError(f"Is a collection: {name}")
            self._store[name] = _Entry(bytes(data), 0o644)
            _logger.debug(f"new_file({name!r}): {len(data)} bytes")

    def remove_all(self, name):
        with self._lock:
            self.calls["remove_all"] += 1
            name = util.normalize_name(name)
            if name == "/":
                raise PermissionError("Cannot remove the root collection")
            self._get(name)
            for n in self._descendant_names(name):
                del self._store[n]
            del self._store[name]

    def rename(self, old_name, new_name):
        with self._lock:
            self.calls["rename"] += 1
            old_name = util.normalize_name(old_name)
            new_name = util.normalize_name(new_name)
            self._get(old_name)
            if new_name in self._store:
                raise FileExistsError(f"Already exists: {new_name}")
            if new_name.startswith(old_name.rstrip("/") + "/"):
                raise ValueError(f"Cannot move {old_name} into itself")
            self._get_dir(_parent(new_name))
            for n in [old_name] + self._descendant_names(old_name):
                self._store[new_name + n[len(old_name) :]] = self._store.pop(n)
