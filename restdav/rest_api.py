# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Abstract base class of a whole-object REST storage backend.

A backend only knows how to transfer complete objects. It has no notion of
partial reads, partial writes or seeking; :class:`~restdav.rest_file.RestFile`
provides that on top of it.

Object names are absolute, '/'-separated paths (e.g. ``'/docs/a.txt'``).

Every method signals an absent object by raising either
``RestFSError(ErrorKind.NOT_FOUND)`` or ``FileNotFoundError``. Any other
exception is treated as a backend failure.

Implementations must be thread safe: the WebDAV server calls them from many
request threads at once.

See :class:`~restdav.local_api.LocalDirAPI` and
:class:`~restdav.memory_api.MemoryAPI` for implementations.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, List

from restdav.file_info import FileInfo

__docformat__ = "reStructuredText"


class RestAPI(ABC):
    """Capability set of a REST storage backend."""

    def __repr__(self):
        return f"{self.__class__.__name__}()"

    @abstractmethod
    def get_content(self, name: str) -> BinaryIO:
        """Return the whole content of `name` as a readable binary stream.

        The caller is responsible for closing the stream.
        """

    @abstractmethod
    def stat(self, name: str) -> FileInfo:
        """Return metadata of `name`."""

    @abstractmethod
    def get_children(self, name: str) -> List[FileInfo]:
        """Return metadata of all direct members of the collection `name`.

        An empty collection returns an empty list.
        """

    @abstractmethod
    def mkdir(self, name: str, perm: int) -> None:
        """Create the collection `name`."""

    @abstractmethod
    def update(self, name: str, stream: BinaryIO) -> None:
        """Replace the content of the existing object `name` with `stream`."""

    @abstractmethod
    def new_file(self, name: str, stream: BinaryIO) -> None:
        """Create the object `name` with the content of `stream`."""

    @abstractmethod
    def remove_all(self, name: str) -> None:
        """Remove `name` and, if it is a collection, all of its members."""

    @abstractmethod
    def rename(self, old_name: str, new_name: str) -> None:
        """Move `old_name` (including members) to `new_name`."""
