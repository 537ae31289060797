# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
    Test helpers.

Example:
    api = FailingAPI({"/a.txt": b"abc"}, fail={"update": OSError("boom")})
    fs = RestFileSystem(api, staging=RecordingStaging())
"""

import io
import os
import shutil
from tempfile import mkdtemp

from restdav.memory_api import MemoryAPI
from restdav.staging import MemoryStaging

FIXTURE_CONTENT = {
    "/readme.txt": b"Hello, world!",
    "/world.txt": b"world",
    "/docs": None,
    "/docs/guide.txt": b"A guide",
    "/docs/api": None,
    "/docs/api/index.txt": b"Index",
    "/empty": None,
}


# ========================================================================
# RecordingStaging
# ========================================================================


class RecordingStaging(MemoryStaging):
    """MemoryStaging that remembers every buffer it handed out."""

    def __init__(self):
        self.buffers = []

    def create(self, name):
        buffer = super().create(name)
        self.buffers.append(buffer)
        return buffer

    @property
    def open_buffers(self):
        return [b for b in self.buffers if not b.closed]


class _UnreleasableBuffer(io.BytesIO):
    def close(self):
        super().close()
        raise OSError("cannot remove staging file")


class UnreleasableStaging(RecordingStaging):
    """RecordingStaging whose buffers raise OSError when closed."""

    def create(self, name):
        buffer = _UnreleasableBuffer()
        self.buffers.append(buffer)
        return buffer


# ========================================================================
# FailingAPI
# ========================================================================


class FailingAPI(MemoryAPI):
    """MemoryAPI that raises a configured exception for some methods."""

    def __init__(self, initial=None, fail=None):
        super().__init__(initial)
        self.fail = dict(fail or {})

    def _check(self, method):
        e = self.fail.get(method)
        if e is not None:
            self.calls[method] += 1
            raise e

    def get_content(self, name):
        self._check("get_content")
        return super().get_content(name)

    def stat(self, name):
        self._check("stat")
        return super().stat(name)

    def get_children(self, name):
        self._check("get_children")
        return super().get_children(name)

    def update(self, name, stream):
        self._check("update")
        return super().update(name, stream)

    def new_file(self, name, stream):
        self._check("new_file")
        return super().new_file(name, stream)


# ==============================================================================
# Temp folders
# ==============================================================================


def create_test_folder(files=None):
    """Create a temp folder with `files` ({rel_path: bytes | None(folder)})."""
    path = mkdtemp(prefix="restdav-test-")
    for name, data in (files or {}).items():
        fp = os.path.join(path, *name.strip("/").split("/"))
        if data is None:
            os.makedirs(fp, exist_ok=True)
        else:
            os.makedirs(os.path.dirname(fp), exist_ok=True)
            with open(fp, "wb") as f:
                f.write(data)
    return path


def remove_test_folder(path):
    shutil.rmtree(path, ignore_errors=True)
