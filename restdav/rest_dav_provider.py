# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Implementation of a WsgiDAV DAV provider that serves resources from a
REST backend.

:class:`~restdav.rest_dav_provider.RestDAVProvider` wraps a
:class:`~restdav.rest_fs.RestFileSystem` and creates instances of
:class:`RestFileResource` and :class:`RestFolderResource` to represent
objects and collections respectively.

Content is transferred through :class:`~restdav.rest_file.RestFile` handles,
so GET requests fetch the remote object once and PUT requests upload it
once, when WsgiDAV closes the handle.

If ``readonly=True`` is passed, write attempts will raise HTTP_FORBIDDEN.

Usage::

    from wsgidav.wsgidav_app import WsgiDAVApp
    from restdav.local_api import LocalDirAPI
    from restdav.rest_dav_provider import RestDAVProvider

    config = {
        "provider_mapping": {"/": RestDAVProvider(LocalDirAPI("/tmp/share"))},
        "simple_dc": {"user_mapping": {"*": True}},
    }
    app = WsgiDAVApp(config)
"""

import functools
import os
import shutil

from wsgidav import util as dav_util
from wsgidav.dav_error import (
    HTTP_BAD_GATEWAY,
    HTTP_BAD_REQUEST,
    HTTP_FORBIDDEN,
    HTTP_INSUFFICIENT_STORAGE,
    HTTP_NOT_FOUND,
    DAVError,
)
from wsgidav.dav_provider import DAVCollection, DAVNonCollection, DAVProvider

from restdav import util
from restdav.rest_error import ErrorKind, RestFSError
from restdav.rest_fs import RestFileSystem

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)

BUFFER_SIZE = 8192

#: HTTP status used for each kind of RestFSError
ERROR_KIND_STATUS = {
    ErrorKind.NOT_FOUND: HTTP_NOT_FOUND,
    ErrorKind.INVALID_ARGUMENT: HTTP_BAD_REQUEST,
    ErrorKind.LOCAL_STAGING: HTTP_INSUFFICIENT_STORAGE,
    ErrorKind.BACKEND: HTTP_BAD_GATEWAY,
}


def to_dav_error(e):
    """Convert a RestFSError to a DAVError with a matching HTTP status."""
    return DAVError(ERROR_KIND_STATUS[e.kind], e.context_info, src_exception=e)


def dav_errors(func):
    """Decorator: re-raise RestFSError as DAVError."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except RestFSError as e:
            _logger.debug(f"{func.__name__}: {e}")
            raise to_dav_error(e) from e

    return wrapper


def _check_writable(res):
    if res.provider.readonly:
        raise DAVError(HTTP_FORBIDDEN)


class _DAVStream:
    """File-like proxy for a RestFile that raises DAVError instead of
    RestFSError, so failed uploads are reported with the matching status.
    """

    def __init__(self, rest_file):
        self._file = rest_file

    def __repr__(self):
        return f"_DAVStream({self._file!r})"

    @dav_errors
    def read(self, size=-1):
        return self._file.read(size)

    @dav_errors
    def write(self, data):
        return self._file.write(data)

    @dav_errors
    def seek(self, offset, whence=os.SEEK_SET):
        return self._file.seek(offset, whence)

    def tell(self):
        return self._file.tell()

    @dav_errors
    def close(self):
        self._file.close()

    def discard(self):
        self._file.discard()


# ========================================================================
# RestFileResource
# ========================================================================
class RestFileResource(DAVNonCollection):
    """Represents a single existing backend object.

    See also _DAVResource, DAVNonCollection, and RestDAVProvider.
    """

    def __init__(self, path: str, environ: dict, info):
        super().__init__(path, environ)
        self.info = info
        self.fs: RestFileSystem = self.provider.fs
        self._write_stream = None

    # Getter methods for standard live properties
    def get_content_length(self):
        return self.info.size

    def get_content_type(self):
        return self.info.content_type or dav_util.guess_mime_type(self.path)

    def get_creation_date(self):
        return self.info.ctime

    def get_display_name(self):
        return self.name

    def get_etag(self):
        return self.info.etag

    def get_last_modified(self):
        return self.info.mtime

    def support_etag(self):
        return self.info.etag is not None

    def support_ranges(self):
        return True

    @dav_errors
    def get_content(self):
        """Open content as a stream for reading.

        The remote object is fetched on the first read(), so a Range request
        only pays for the seek() arithmetic until then.

        See DAVResource.get_content()
        """
        assert not self.is_collection
        return _DAVStream(self.fs.open_file(self.path, os.O_RDONLY, 0))

    @dav_errors
    def begin_write(self, *, content_type=None):
        """Open content as a stream for writing.

        The backend is updated when the caller closes the returned stream.

        See DAVResource.begin_write()
        """
        assert not self.is_collection
        _check_writable(self)
        f = self.fs.open_file(
            self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, self.info.mode
        )
        self._write_stream = _DAVStream(f)
        return self._write_stream

    @dav_errors
    def end_write(self, *, with_errors):
        """Refresh live properties after the content was uploaded.

        If the upload was aborted, the unfinished stream is discarded.
        """
        stream, self._write_stream = self._write_stream, None
        if with_errors:
            _logger.warning(f"end_write({self.path!r}) with errors")
            if stream is not None:
                stream.discard()
            return
        self.info = self.fs.stat(self.path)

    @dav_errors
    def delete(self):
        """Remove this resource.

        See DAVResource.delete()
        """
        _check_writable(self)
        self.fs.remove_all(self.path)
        self.remove_all_properties(recursive=True)
        self.remove_all_locks(recursive=True)

    @dav_errors
    def copy_move_single(self, dest_path, *, is_move):
        """See DAVResource.copy_move_single()"""
        _check_writable(self)
        assert not dav_util.is_equal_or_child_uri(self.path, dest_path)
        # Copy content (overwrite, if exists)
        with self.fs.open_file(self.path) as src:
            with self.fs.open_file(
                dest_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, self.info.mode
            ) as dest:
                shutil.copyfileobj(src, dest, BUFFER_SIZE)
        # Copy dead properties
        propMan = self.provider.prop_manager
        if propMan:
            destRes = self.provider.get_resource_inst(dest_path, self.environ)
            if is_move:
                propMan.move_properties(
                    self.get_ref_url(),
                    destRes.get_ref_url(),
                    with_children=False,
                    environ=self.environ,
                )
            else:
                propMan.copy_properties(
                    self.get_ref_url(), destRes.get_ref_url(), self.environ
                )

    def support_recursive_move(self, dest_path):
        """Return True, if move_recursive() is available (see comments there)."""
        return True

    @dav_errors
    def move_recursive(self, dest_path):
        """See DAVResource.move_recursive()"""
        _check_writable(self)
        assert not dav_util.is_equal_or_child_uri(self.path, dest_path)
        self.fs.rename(self.path, dest_path)
        if self.provider.prop_manager:
            destRes = self.provider.get_resource_inst(dest_path, self.environ)
            self.provider.prop_manager.move_properties(
                self.get_ref_url(),
                destRes.get_ref_url(),
                with_children=True,
                environ=self.environ,
            )


# ========================================================================
# RestFolderResource
# ========================================================================
class RestFolderResource(DAVCollection):
    """Represents a single existing backend collection.

    See also _DAVResource, DAVCollection, and RestDAVProvider.
    """

    def __init__(self, path: str, environ: dict, info):
        super().__init__(path, environ)
        self.info = info
        self.fs: RestFileSystem = self.provider.fs

    # Getter methods for standard live properties
    def get_creation_date(self):
        return self.info.ctime

    def get_display_name(self):
        return self.name

    def get_directory_info(self):
        return None

    def get_etag(self):
        return None

    def get_last_modified(self):
        return self.info.mtime

    @dav_errors
    def get_member_names(self):
        """Return list of direct collection member names.

        See DAVCollection.get_member_names()
        """
        return [entry.name for entry in self.fs.read_dir(self.path)]

    @dav_errors
    def get_member_list(self):
        """Return all direct members, using a single backend listing."""
        res = []
        for entry in self.fs.read_dir(self.path):
            path = dav_util.join_uri(self.path, entry.name)
            res.append(self.provider._make_resource(path, self.environ, entry.info()))
        return res

    def get_member(self, name):
        """Return direct collection member (DAVResource or derived).

        See DAVCollection.get_member()
        """
        assert "/" not in name, f"{name!r}"
        path = dav_util.join_uri(self.path, name)
        return self.provider.get_resource_inst(path, self.environ)

    # --- Read / write -------------------------------------------------------

    @dav_errors
    def create_empty_resource(self, name):
        """Create an empty (length-0) resource.

        See DAVResource.create_empty_resource()
        """
        assert "/" not in name
        _check_writable(self)
        path = dav_util.join_uri(self.path, name)
        self.fs.open_file(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644).close()
        return self.provider.get_resource_inst(path, self.environ)

    @dav_errors
    def create_collection(self, name):
        """Create a new collection as member of self.

        See DAVResource.create_collection()
        """
        assert "/" not in name
        _check_writable(self)
        self.fs.mkdir(dav_util.join_uri(self.path, name), 0o777)

    @dav_errors
    def delete(self):
        """Remove this collection (recursive).

        See DAVResource.delete()
        """
        _check_writable(self)
        self.fs.remove_all(self.path)
        self.remove_all_properties(recursive=True)
        self.remove_all_locks(recursive=True)

    @dav_errors
    def copy_move_single(self, dest_path, *, is_move):
        """See DAVResource.copy_move_single()"""
        _check_writable(self)
        assert not dav_util.is_equal_or_child_uri(self.path, dest_path)
        # Create destination collection, if not exists
        if not self.fs.exists(dest_path):
            self.fs.mkdir(dest_path, self.info.mode or 0o777)
        # Copy dead properties
        propMan = self.provider.prop_manager
        if propMan:
            destRes = self.provider.get_resource_inst(dest_path, self.environ)
            if is_move:
                propMan.move_properties(
                    self.get_ref_url(),
                    destRes.get_ref_url(),
                    with_children=False,
                    environ=self.environ,
                )
            else:
                propMan.copy_properties(
                    self.get_ref_url(), destRes.get_ref_url(), self.environ
                )

    def support_recursive_move(self, dest_path):
        """Return True, if move_recursive() is available (see comments there)."""
        return True

    @dav_errors
    def move_recursive(self, dest_path):
        """See DAVResource.move_recursive()"""
        _check_writable(self)
        assert not dav_util.is_equal_or_child_uri(self.path, dest_path)
        _logger.debug(f"move_recursive({self.path}, {dest_path})")
        self.fs.rename(self.path, dest_path)
        if self.provider.prop_manager:
            destRes = self.provider.get_resource_inst(dest_path, self.environ)
            self.provider.prop_manager.move_properties(
                self.get_ref_url(),
                destRes.get_ref_url(),
                with_children=True,
                environ=self.environ,
            )


# ========================================================================
# RestDAVProvider
# ========================================================================
class RestDAVProvider(DAVProvider):
    """DAVProvider that publishes a REST backend.

    Args:
        api (RestAPI): the backend
        readonly (bool): reject all write requests with HTTP_FORBIDDEN
        staging (StagingProvider | None): passed to RestFileSystem
    """

    def __init__(self, api, *, readonly=False, staging=None):
        super().__init__()
        self.fs = RestFileSystem(api, staging=staging)
        self.readonly = readonly

    def __repr__(self):
        rw = "Read-Only" if self.readonly else "Read-Write"
        return f"{self.__class__.__name__} for {self.fs.api!r} ({rw})"

    def is_readonly(self):
        return self.readonly

    def _make_resource(self, path, environ, info):
        if info.is_dir:
            return RestFolderResource(path, environ, info)
        return RestFileResource(path, environ, info)

    def get_resource_inst(self, path: str, environ: dict):
        """Return a RestFileResource or RestFolderResource for path
        (None if it does not exist).

        See DAVProvider.get_resource_inst()
        """
        self._count_get_resource_inst += 1
        try:
            info = self.fs.stat(path)
        except RestFSError as e:
            if e.is_not_found:
                return None
            raise to_dav_error(e) from e
        return self._make_resource(path, environ, info)
