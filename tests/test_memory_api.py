# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""Unit tests for restdav.memory_api"""

import io
import unittest

import pytest

from restdav.memory_api import MemoryAPI
from restdav.rest_error import RestFSError
from tests.util import FIXTURE_CONTENT


class BasicTest(unittest.TestCase):
    def setUp(self):
        self.api = MemoryAPI(FIXTURE_CONTENT)

    def testInitial(self):
        api = MemoryAPI({"/a/b/c.txt": "text"})
        assert api.stat("/a").is_dir
        assert api.stat("/a/b").is_dir
        assert api.get_content("/a/b/c.txt").read() == b"text"
        assert api.stat("/").is_dir

    def testContent(self):
        assert self.api.get_content("/readme.txt").read() == b"Hello, world!"
        with pytest.raises(RestFSError) as exc_info:
            self.api.get_content("/missing.txt")
        assert exc_info.value.is_not_found
        self.assertRaises(IsADirectoryError, self.api.get_content, "/docs")

    def testStat(self):
        info = self.api.stat("/readme.txt")
        assert info.name == "readme.txt"
        assert info.size == 13
        assert info.mode == 0o644
        assert not info.is_dir
        etag = info.etag

        self.api.update("/readme.txt", io.BytesIO(b"changed"))
        info = self.api.stat("/readme.txt")
        assert info.size == 7
        assert info.etag != etag

    def testChildren(self):
        names = sorted(i.name for i in self.api.get_children("/docs"))
        assert names == ["api", "guide.txt"]
        assert self.api.get_children("/empty") == []
        self.assertRaises(NotADirectoryError, self.api.get_children, "/readme.txt")

    def testNewFileUpdate(self):
        self.api.new_file("/docs/new.txt", io.BytesIO(b"new"))
        assert self.api.get_content("/docs/new.txt").read() == b"new"

        # new_file() replaces existing files
        self.api.new_file("/docs/new.txt", io.BytesIO(b"newer"))
        assert self.api.get_content("/docs/new.txt").read() == b"newer"

        with pytest.raises(RestFSError) as exc_info:
            self.api.update("/docs/missing.txt", io.BytesIO(b""))
        assert exc_info.value.is_not_found

        with pytest.raises(RestFSError):
            self.api.new_file("/missing/new.txt", io.BytesIO(b""))
        self.assertRaises(
            NotADirectoryError, self.api.new_file, "/readme.txt/x", io.BytesIO(b"")
        )
        self.assertRaises(IsADirectoryError, self.api.new_file, "/docs", io.BytesIO())

        assert self.api.calls["new_file"] == 5
        assert self.api.calls["update"] == 1

    def testMkdir(self):
        self.api.mkdir("/docs/sub", 0o750)
        assert self.api.stat("/docs/sub").mode == 0o750
        self.assertRaises(FileExistsError, self.api.mkdir, "/docs/sub", 0o777)
        self.assertRaises(RestFSError, self.api.mkdir, "/missing/sub", 0o777)

    def testRemoveAll(self):
        self.api.remove_all("/docs")
        for name in ("/docs", "/docs/api", "/docs/api/index.txt"):
            with pytest.raises(RestFSError):
                self.api.stat(name)
        assert self.api.stat("/readme.txt")
        self.assertRaises(PermissionError, self.api.remove_all, "/")

    def testRename(self):
        self.api.rename("/docs", "/empty/docs")
        assert self.api.get_content("/empty/docs/api/index.txt").read() == b"Index"
        self.assertRaises(RestFSError, self.api.stat, "/docs/guide.txt")

        self.assertRaises(FileExistsError, self.api.rename, "/readme.txt", "/world.txt")
        self.assertRaises(ValueError, self.api.rename, "/empty", "/empty/docs/x")
        self.assertRaises(RestFSError, self.api.rename, "/missing", "/x")


if __name__ == "__main__":
    unittest.main()
