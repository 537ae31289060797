# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Implements two storage providers for the local staging buffers of `RestFile`.

A staging buffer holds the local copy of one remote object while a handle is
open. It is a binary, seekable, read/write file object; calling ``close()``
releases it and leaves nothing behind.

Two alternative staging providers are defined here: one in-memory
(``io.BytesIO``), and one backed by anonymous temporary files.

The provider is passed to :class:`~restdav.rest_fs.RestFileSystem`, see
:func:`make_staging_provider` for the configuration options.
"""

import io
import os
import tempfile
from abc import ABC, abstractmethod

from restdav import util
from restdav.rest_error import ErrorKind, RestFSError

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


class StagingProvider(ABC):
    """Allocates local staging buffers."""

    def __repr__(self):
        return f"{self.__class__.__name__}()"

    @abstractmethod
    def create(self, name: str):
        """Return a new, empty, binary read/write file object for `name`."""


# ========================================================================
# MemoryStaging
# ========================================================================
class MemoryStaging(StagingProvider):
    """Keep staging buffers in memory."""

    def create(self, name):
        return io.BytesIO()


# ========================================================================
# TempFileStaging
# ========================================================================
class TempFileStaging(StagingProvider):
    """Keep staging buffers in anonymous temporary files.

    Args:
        temp_dir (str | None): folder for the temporary files (created on
            demand). Defaults to the system temp folder.
        max_size (int): if > 0, buffers stay in memory until they grow larger
            than `max_size` bytes (``tempfile.SpooledTemporaryFile``).
    """

    def __init__(self, temp_dir=None, *, max_size=0):
        self.temp_dir = temp_dir
        self.max_size = max_size

    def __repr__(self):
        return f"{self.__class__.__name__}({self.temp_dir!r}, max_size={self.max_size})"

    def create(self, name):
        prefix = util.staging_prefix(name)
        try:
            if self.temp_dir:
                os.makedirs(self.temp_dir, exist_ok=True)
            if self.max_size > 0:
                return tempfile.SpooledTemporaryFile(
                    max_size=self.max_size, mode="w+b", prefix=prefix, dir=self.temp_dir
                )
            return tempfile.TemporaryFile(mode="w+b", prefix=prefix, dir=self.temp_dir)
        except OSError as e:
            _logger.error(f"Could not create staging file for {name!r}: {e}")
            raise RestFSError(
                ErrorKind.LOCAL_STAGING, "cannot create tmp file", src_exception=e
            ) from e


def make_staging_provider(opts=None) -> StagingProvider:
    """Create a staging provider from the `rest_dav_provider` config section.

    Supported options::

        staging: "temp"        # "temp" or "memory"
        staging_dir: null      # folder for "temp"
        spool_max_size: 0      # keep small "temp" buffers in memory
    """
    opts = opts or {}
    kind = opts.get("staging") or "temp"
    if kind == "memory":
        return MemoryStaging()
    elif kind == "temp":
        return TempFileStaging(
            opts.get("staging_dir"), max_size=opts.get("spool_max_size") or 0
        )
    raise ValueError(f"Invalid staging option {kind!r} (expected 'temp' or 'memory')")
