# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""Unit tests for restdav.server.server_cli"""

import logging
import os
import unittest
from io import StringIO
from unittest import mock

import pytest

from restdav.local_api import LocalDirAPI
from restdav.memory_api import MemoryAPI
from restdav.rest_dav_provider import RestDAVProvider
from restdav.rest_fs import RestFileSystem
from restdav.server import server_cli
from restdav.staging import MemoryStaging, TempFileStaging
from restdav.util import BASE_LOGGER_NAME
from tests.util import FIXTURE_CONTENT, create_test_folder, remove_test_folder

YAML_CONFIG = """\
port: 8081
verbose: 2
rest_dav_provider:
    backend: local
    root: share
    readonly: true
    staging: memory
"""

JSON_CONFIG = """\
// Comments are allowed (json5)
{
    "host": "0.0.0.0",
    "rest_dav_provider": {
        "backend": "memory",
        "spool_max_size": 1024,
    },
}
"""


class ConfigTest(unittest.TestCase):
    def setUp(self):
        self.folder = create_test_folder({"share": None, **FIXTURE_CONTENT})

    def tearDown(self):
        remove_test_folder(self.folder)

    def _write(self, name, text):
        path = os.path.join(self.folder, name)
        with open(path, "wt", encoding="utf-8") as f:
            f.write(text)
        return path

    def _init_config(self, *args):
        with mock.patch("sys.argv", ["restdav", *args]):
            return server_cli._init_config()

    def testReadYaml(self):
        path = self._write("restdav.yaml", YAML_CONFIG)
        conf = server_cli._read_config_file(path)
        assert conf["port"] == 8081
        assert conf["rest_dav_provider"]["readonly"] is True
        assert conf["_config_file"] == path
        assert conf["_config_root"] == self.folder

    def testReadJson5(self):
        path = self._write("restdav.json", JSON_CONFIG)
        conf = server_cli._read_config_file(path)
        assert conf["host"] == "0.0.0.0"
        assert conf["rest_dav_provider"]["backend"] == "memory"

    def testReadInvalid(self):
        path = self._write("restdav.ini", "[server]")
        self.assertRaises(RuntimeError, server_cli._read_config_file, path)
        self.assertRaises(
            RuntimeError,
            server_cli._read_config_file,
            os.path.join(self.folder, "missing.yaml"),
        )

    def testMakeProvider(self):
        provider = server_cli.make_rest_dav_provider({"backend": "memory"})
        assert isinstance(provider, RestDAVProvider)
        assert isinstance(provider.fs.api, MemoryAPI)
        assert isinstance(provider.fs.staging, TempFileStaging)
        assert not provider.is_readonly()

        # Relative roots are resolved against the config file folder
        provider = server_cli.make_rest_dav_provider(
            {"backend": "local", "root": "share", "readonly": True, "staging": "memory"},
            config_root=self.folder,
        )
        assert isinstance(provider.fs.api, LocalDirAPI)
        assert provider.fs.api.root_folder_path == os.path.join(self.folder, "share")
        assert isinstance(provider.fs.staging, MemoryStaging)
        assert provider.is_readonly()

        self.assertRaises(ValueError, server_cli.make_rest_dav_provider, {})
        self.assertRaises(
            ValueError, server_cli.make_rest_dav_provider, {"backend": "s3"}
        )

    def testCommandLine(self):
        cli_opts, config = self._init_config(
            "--memory", "--staging=memory", "--port=8082", "--readonly", "--no-config"
        )
        assert cli_opts["memory"] is True
        assert config["port"] == 8082
        assert config["host"] == "localhost"
        provider = config["provider_mapping"]["/"]
        assert isinstance(provider.fs.api, MemoryAPI)
        assert isinstance(provider.fs.staging, MemoryStaging)
        assert provider.is_readonly()

        cli_opts, config = self._init_config("--root", self.folder, "-q", "--no-config")
        assert config["verbose"] == 2
        provider = config["provider_mapping"]["/"]
        assert provider.fs.api.root_folder_path == self.folder
        assert not provider.is_readonly()

    def testConfigFile(self):
        path = self._write("restdav.yaml", YAML_CONFIG)
        cli_opts, config = self._init_config("--config", path, "--port=9000")
        # Command line overrides file
        assert config["port"] == 9000
        assert config["verbose"] == 2
        provider = config["provider_mapping"]["/"]
        assert provider.fs.api.root_folder_path == os.path.join(self.folder, "share")
        assert provider.is_readonly()

    def testMissingBackend(self):
        with pytest.raises(SystemExit):
            self._init_config("--no-config")
        with pytest.raises(SystemExit):
            self._init_config("--root", os.path.join(self.folder, "missing"))


class PublishedTreeTest(unittest.TestCase):
    def setUp(self):
        self.buffer = StringIO()
        self.handler = logging.StreamHandler(self.buffer)
        self.logger = logging.getLogger(BASE_LOGGER_NAME)
        self.prev_level = self.logger.level
        self.logger.setLevel(logging.DEBUG)
        self.logger.addHandler(self.handler)

    def tearDown(self):
        self.logger.removeHandler(self.handler)
        self.logger.setLevel(self.prev_level)
        self.handler.close()

    def testLogPublishedTree(self):
        fs = RestFileSystem(MemoryAPI(FIXTURE_CONTENT))
        assert server_cli.log_published_tree(fs) == len(FIXTURE_CONTENT)

        self.handler.flush()
        output = self.buffer.getvalue()
        assert "  /docs/\n" in output
        assert "  /docs/api/index.txt (5 bytes)\n" in output
        assert "  /readme.txt (13 bytes)\n" in output
        assert "7 objects published by MemoryAPI" in output


if __name__ == "__main__":
    unittest.main()
