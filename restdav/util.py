# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Miscellaneous support functions for RestDAV.
"""

import logging
import posixpath
import sys

from restdav import __version__

__docformat__ = "reStructuredText"

#: The base logger (silent by default)
BASE_LOGGER_NAME = "restdav"
_logger = logging.getLogger(BASE_LOGGER_NAME)

#: Currently used Python version as string
PYTHON_VERSION = ".".join([str(s) for s in sys.version_info[:3]])

#: Project name and version presented in log output
public_restdav_info = f"RestDAV/{__version__}"


# ========================================================================
# String tools
# ========================================================================


def to_bytes(s, encoding="utf8"):
    """Convert a text string (unicode) or bytes-like object to bytes."""
    if isinstance(s, str):
        return s.encode(encoding)
    return bytes(s)


# ========================================================================
# Name tools
# ========================================================================


def normalize_name(name: str) -> str:
    """Return an absolute, '/'-separated object name without trailing slash.

    >>> normalize_name("a//b/")
    '/a/b'
    >>> normalize_name("")
    '/'
    """
    if not name:
        return "/"
    name = posixpath.normpath("/" + name.replace("\\", "/"))
    # normpath keeps a leading '//' (POSIX allows it to be special)
    if name.startswith("//"):
        name = "/" + name.lstrip("/")
    return name


def get_base_name(name: str) -> str:
    """Return the last segment of an object name ('' for the root)."""
    return posixpath.basename(normalize_name(name))


def join_name(parent: str, *segments) -> str:
    """Append segments to an object name."""
    return normalize_name(posixpath.join(normalize_name(parent), *segments))


def staging_prefix(name: str) -> str:
    """Return a flat file name prefix for the staging copy of `name`."""
    return normalize_name(name).replace("/", "_") + "-"


# ========================================================================
# Logging
# ========================================================================


def init_logging(config):
    """Initialize base logger named 'restdav'.

    The base logger is filtered by the `verbose` configuration option.

    Module loggers (e.g 'restdav.rest_file') are named loggers, that
    can be independently switched to DEBUG mode by listing them in
    ``config["logging"]["enable_loggers"]``::

        _logger = util.get_module_logger(__name__)
        [..]
        _logger.debug(f"staged {name!r}")

    +---------+--------+-------------+------------------------+------------------------+
    | Verbose | Option | base logger | module logger(default) | module logger(enabled) |
    +=========+========+=============+========================+========================+
    |    0    | -qqq   | CRITICAL    | CRITICAL               | CRITICAL               |
    |    1    | -qq    | ERROR       | ERROR                  | ERROR                  |
    |    2    | -q     | WARN        | WARN                   | WARN                   |
    |    3    |        | INFO        | INFO                   | **DEBUG**              |
    |    4    | -v     | DEBUG       | DEBUG                  | DEBUG                  |
    |    5    | -vv    | DEBUG       | DEBUG                  | DEBUG                  |
    +---------+--------+-------------+------------------------+------------------------+
    """
    from restdav.default_conf import DEFAULT_LOGGER_DATE_FORMAT, DEFAULT_LOGGER_FORMAT

    verbose = config.get("verbose", 3)
    log_opts = config.get("logging") or {}

    enable_loggers = log_opts.get("enable_loggers") or []

    logger_date_format = log_opts.get("logger_date_format", DEFAULT_LOGGER_DATE_FORMAT)
    logger_format = log_opts.get("logger_format", DEFAULT_LOGGER_FORMAT)

    formatter = logging.Formatter(logger_format, logger_date_format)

    consoleHandler = logging.StreamHandler(sys.stdout)
    consoleHandler.setFormatter(formatter)

    logger = logging.getLogger(BASE_LOGGER_NAME)

    if verbose >= 4:  # --verbose
        logger.setLevel(logging.DEBUG)
    elif verbose == 3:  # default
        logger.setLevel(logging.INFO)
    elif verbose == 2:  # --quiet
        logger.setLevel(logging.WARN)
    elif verbose == 1:  # -qq
        logger.setLevel(logging.ERROR)
    else:  # -qqq
        logger.setLevel(logging.CRITICAL)

    # Don't call the root's handlers after our custom handlers
    logger.propagate = False

    # Remove previous handlers
    for hdlr in logger.handlers[:]:  # Must iterate an array copy
        try:
            hdlr.flush()
            hdlr.close()
        except Exception:
            pass
        logger.removeHandler(hdlr)

    logger.addHandler(consoleHandler)

    if verbose >= 3:
        for e in enable_loggers:
            if not e.startswith(BASE_LOGGER_NAME + "."):
                e = BASE_LOGGER_NAME + "." + e
            lg = logging.getLogger(e.strip())
            lg.setLevel(logging.DEBUG)
    return


def get_module_logger(moduleName):
    """Create a module logger, that can be en/disabled by configuration.

    @see: unit.init_logging
    """
    if not moduleName.startswith(BASE_LOGGER_NAME + "."):
        moduleName = BASE_LOGGER_NAME + "." + moduleName
    return logging.getLogger(moduleName)
