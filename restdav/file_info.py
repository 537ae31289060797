# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Metadata values exchanged between the backend and the file system layer.

:class:`FileInfo` is what a backend returns from ``stat()`` and
``get_children()``.
:class:`NewFileInfo` answers ``RestFile.stat()`` for objects that were opened
with ``O_CREAT`` but have not been flushed to the backend yet.
:class:`DirEntry` is the directory listing view of either.
"""

import stat
import time
from dataclasses import dataclass
from typing import Optional

from restdav import util

__docformat__ = "reStructuredText"


@dataclass
class FileInfo:
    """Metadata of a backend object."""

    name: str
    size: int = 0
    mode: int = 0o644
    mtime: Optional[float] = None
    is_dir: bool = False
    ctime: Optional[float] = None
    etag: Optional[str] = None
    content_type: Optional[str] = None

    @classmethod
    def from_stat(cls, name: str, st) -> "FileInfo":
        """Create from an ``os.stat_result``."""
        return cls(
            name=util.get_base_name(name),
            size=st.st_size,
            mode=stat.S_IMODE(st.st_mode),
            mtime=st.st_mtime,
            is_dir=stat.S_ISDIR(st.st_mode),
            ctime=st.st_ctime,
        )


class NewFileInfo:
    """Synthetic metadata of a file that is declared but not yet flushed.

    Size is always 0 and it is never a directory.
    """

    def __init__(self, name: str, mode: int, mtime: Optional[float] = None):
        self.name = name
        self.mode = mode
        self.mtime = time.time() if mtime is None else mtime
        self.ctime = self.mtime
        self.etag = None
        self.content_type = None

    def __repr__(self):
        return f"NewFileInfo({self.name!r}, mode={self.mode:o})"

    @property
    def size(self) -> int:
        return 0

    @property
    def is_dir(self) -> bool:
        return False


class DirEntry:
    """Directory listing entry, similar to ``os.DirEntry``."""

    def __init__(self, info):
        self._info = info
        self.name = util.get_base_name(info.name) or info.name

    def __repr__(self):
        return f"<DirEntry {self.name!r}{'/' if self.is_dir() else ''}>"

    @classmethod
    def from_info(cls, info) -> "DirEntry":
        return cls(info)

    def is_dir(self) -> bool:
        return self._info.is_dir

    def is_file(self) -> bool:
        return not self._info.is_dir

    @property
    def type(self) -> int:
        """File type bits (``stat.S_IFDIR`` or ``stat.S_IFREG``)."""
        return stat.S_IFDIR if self._info.is_dir else stat.S_IFREG

    def info(self):
        return self._info
