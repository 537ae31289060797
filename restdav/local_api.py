# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Implementation of :class:`~restdav.rest_api.RestAPI` that stores objects in a
local folder.

This is a demo backend: it behaves like a REST service (whole objects only)
and logs every call, so it is easy to watch what the WebDAV layer does::

    restdav --root=/tmp/share --verbose
"""

import os
import shutil

from restdav import util
from restdav.file_info import FileInfo
from restdav.rest_api import RestAPI
from restdav.rest_error import ErrorKind, RestFSError

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)

BUFFER_SIZE = 8192


class LocalDirAPI(RestAPI):
    """REST backend that publishes the folder `root_folder`."""

    def __init__(self, root_folder):
        root_folder = os.path.abspath(root_folder)
        if not root_folder or not os.path.isdir(root_folder):
            raise ValueError(f"Invalid root path: {root_folder}")
        self.root_folder_path = root_folder

    def __repr__(self):
        return f"{self.__class__.__name__}({self.root_folder_path!r})"

    def _loc_to_file_path(self, name):
        """Convert an object name to an absolute file path below the root."""
        root_path = self.root_folder_path
        path_parts = util.normalize_name(name).strip("/").split("/")
        file_path = os.path.abspath(os.path.join(root_path, *path_parts))
        if file_path != root_path and not file_path.startswith(root_path + os.sep):
            raise RestFSError(
                ErrorKind.INVALID_ARGUMENT, f"{name!r} is outside the root folder"
            )
        return file_path

    def _info(self, name, file_path):
        st = os.stat(file_path)
        info = FileInfo.from_stat(name, st)
        if not info.is_dir:
            info.etag = f"{st.st_ino:x}-{int(st.st_mtime * 1000):x}-{st.st_size:x}"
        return info

    def _copy_from(self, file_path, stream):
        with open(file_path, "wb") as f:
            shutil.copyfileobj(stream, f, BUFFER_SIZE)
            return f.tell()

    # --- RestAPI ------------------------------------------------------------

    def get_content(self, name):
        _logger.info(f"get_content({name!r})")
        return open(self._loc_to_file_path(name), "rb", BUFFER_SIZE)

    def stat(self, name):
        return self._info(name, self._loc_to_file_path(name))

    def get_children(self, name):
        _logger.info(f"get_children({name!r})")
        file_path = self._loc_to_file_path(name)
        res = []
        for entry in os.scandir(file_path):
            # Skip non files (links to nowhere, sockets, ...)
            if not entry.is_dir() and not entry.is_file():
                _logger.info(f"Skipping non-file {entry.path!r}")
                continue
            res.append(self._info(util.join_name(name, entry.name), entry.path))
        return res

    def mkdir(self, name, perm):
        _logger.info(f"mkdir({name!r}, {perm:#o})")
        os.mkdir(self._loc_to_file_path(name), perm)

    def update(self, name, stream):
        file_path = self._loc_to_file_path(name)
        if not os.path.isfile(file_path):
            raise FileNotFoundError(f"No such file: {name!r}")
        size = self._copy_from(file_path, stream)
        _logger.info(f"update({name!r}): {size} bytes")

    def new_file(self, name, stream):
        size = self._copy_from(self._loc_to_file_path(name), stream)
        _logger.info(f"new_file({name!r}): {size} bytes")

    def remove_all(self, name):
        _logger.info(f"remove_all({name!r})")
        file_path = self._loc_to_file_path(name)
        if file_path == self.root_folder_path:
            raise PermissionError("Cannot remove the root folder")
        if os.path.isdir(file_path) and not os.path.islink(file_path):
            shutil.rmtree(file_path)
        else:
            os.unlink(file_path)

    def rename(self, old_name, new_name):
        _logger.info(f"rename({old_name!r}, {new_name!r})")
        fp_src = self._loc_to_file_path(old_name)
        fp_dest = self._loc_to_file_path(new_name)
        if not os.path.exists(fp_src):
            raise FileNotFoundError(f"No such file: {old_name!r}")
        if os.path.exists(fp_dest):
            raise FileExistsError(f"Already exists: {new_name!r}")
        shutil.move(fp_src, fp_dest)
