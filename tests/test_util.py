# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""Unit tests for restdav.util"""

import logging
import logging.handlers
import unittest
from io import StringIO

from restdav.util import (
    BASE_LOGGER_NAME,
    get_base_name,
    get_module_logger,
    init_logging,
    join_name,
    normalize_name,
    staging_prefix,
    to_bytes,
)


class BasicTest(unittest.TestCase):
    """Test ."""

    def testPreconditions(self):
        """Environment must be set."""
        self.assertTrue(
            __debug__, "__debug__ must be True, otherwise asserts are ignored"
        )

    def testBasics(self):
        """Test basic tool functions."""
        assert normalize_name("") == "/"
        assert normalize_name("/") == "/"
        assert normalize_name("a") == "/a"
        assert normalize_name("/a/b/") == "/a/b"
        assert normalize_name("a//b") == "/a/b"
        assert normalize_name("//a") == "/a"
        assert normalize_name("/a/./b/../c") == "/a/c"
        assert normalize_name("/../a") == "/a"
        assert normalize_name("\\a\\b") == "/a/b"

        assert get_base_name("/a/b.txt") == "b.txt"
        assert get_base_name("/a/b/") == "b"
        assert get_base_name("/") == ""

        assert join_name("/a", "b") == "/a/b"
        assert join_name("/a/", "b", "c") == "/a/b/c"
        assert join_name("/", "c") == "/c"
        assert join_name("", "c") == "/c"

        assert staging_prefix("/a/b.txt") == "_a_b.txt-"
        assert staging_prefix("/") == "_-"

        assert to_bytes("ä") == b"\xc3\xa4"
        assert to_bytes(b"abc") == b"abc"
        assert to_bytes(bytearray(b"abc")) == b"abc"


class LoggerTest(unittest.TestCase):
    """Test configurable logging."""

    def setUp(self):
        # We add handlers that store root- and base-logger output
        self.rootBuffer = StringIO()
        rootLogger = logging.getLogger()
        self.prevRootLogLevel = rootLogger.getEffectiveLevel()
        self.rootLogHandler = logging.StreamHandler(self.rootBuffer)
        rootLogger.addHandler(self.rootLogHandler)

        self.baseBuffer = StringIO()
        baseLogger = logging.getLogger(BASE_LOGGER_NAME)
        self.prevBaseLogLevel = baseLogger.getEffectiveLevel()
        self.prevBasePropagate = baseLogger.propagate
        self.baseLogHandler = logging.StreamHandler(self.baseBuffer)
        baseLogger.addHandler(self.baseLogHandler)

    def tearDown(self):
        rootLogger = logging.getLogger()
        self.rootLogHandler.close()
        rootLogger.setLevel(self.prevRootLogLevel)
        rootLogger.removeHandler(self.rootLogHandler)

        baseLogger = logging.getLogger(BASE_LOGGER_NAME)
        self.baseLogHandler.close()
        baseLogger.setLevel(self.prevBaseLogLevel)
        baseLogger.propagate = self.prevBasePropagate
        baseLogger.removeHandler(self.baseLogHandler)

    def getLogOutput(self):
        self.rootLogHandler.flush()
        self.baseLogHandler.flush()
        return (self.rootBuffer.getvalue(), self.baseBuffer.getvalue())

    def testDefault(self):
        """By default, there should be no logging."""
        _baseLogger = logging.getLogger(BASE_LOGGER_NAME)

        _baseLogger.debug("_baseLogger.debug")
        _baseLogger.info("_baseLogger.info")
        _baseLogger.warning("_baseLogger.warning")
        _baseLogger.error("_baseLogger.error")

        rootOutput, baseOutput = self.getLogOutput()
        # Printed for debugging, when test fails:
        print(f"ROOT OUTPUT:\n{rootOutput!r}\nBASE OUTPUT:\n{baseOutput!r}")

        # No output should be generated in the root logger
        assert rootOutput == ""
        # The library logger should default to INFO level
        assert ".debug" not in baseOutput
        assert ".info" in baseOutput
        assert ".warning" in baseOutput
        assert ".error" in baseOutput

    def testModuleLogger(self):
        """Module loggers are children of the base logger."""
        _moduleLogger = get_module_logger("restdav.rest_file")
        assert _moduleLogger.name == "restdav.rest_file"
        assert get_module_logger("rest_file") is _moduleLogger

        _moduleLogger.debug("_moduleLogger.debug")
        _moduleLogger.warning("_moduleLogger.warning")

        rootOutput, baseOutput = self.getLogOutput()
        assert rootOutput == ""
        assert ".debug" not in baseOutput
        assert ".warning" in baseOutput

    def testCliLogging(self):
        """CLI initializes logging."""
        config = {
            "verbose": 3,
            "logging": {
                "enable_loggers": ["test"],
            },
        }
        init_logging(config)

        _baseLogger = logging.getLogger(BASE_LOGGER_NAME)
        _enabledLogger = get_module_logger("test")
        _disabledLogger = get_module_logger("test2")

        assert _baseLogger.level == logging.INFO
        assert _baseLogger.propagate is False
        assert _enabledLogger.level == logging.DEBUG
        assert _disabledLogger.level == logging.NOTSET

        _baseLogger.info("_baseLogger.info")
        _enabledLogger.debug("_enabledLogger.debug")
        _disabledLogger.debug("_disabledLogger.debug")

        rootOutput, baseOutput = self.getLogOutput()
        # Printed for debugging, when test fails:
        print(f"ROOT OUTPUT:\n{rootOutput!r}\nBASE OUTPUT:\n{baseOutput!r}")

        # init_logging() removes all other handlers
        assert rootOutput == ""
        assert baseOutput == ""


if __name__ == "__main__":
    unittest.main()
