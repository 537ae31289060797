# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Default configuration.

Options that are not listed here are passed to WsgiDAV unchanged and default
to ``wsgidav.default_conf.DEFAULT_CONFIG``.
"""

__docformat__ = "reStructuredText"

# Use these settings, if config file does not define them (or is totally missing)
DEFAULT_VERBOSE = 3
DEFAULT_LOGGER_DATE_FORMAT = "%H:%M:%S"
DEFAULT_LOGGER_FORMAT = "%(asctime)s.%(msecs)03d - %(levelname)-8s: %(message)s"

DEFAULT_CONFIG = {
    "server": "cheroot",
    "server_args": {},
    "host": "localhost",
    "port": 8080,
    "provider_mapping": {},
    #: Options for the REST provider that is mounted on '/' if
    #: `provider_mapping` is empty
    "rest_dav_provider": {
        "backend": "local",  # "local" (publish `root`) or "memory"
        "root": None,  # Folder for the "local" backend
        "readonly": False,
        "staging": "temp",  # "temp" or "memory"
        "staging_dir": None,  # Folder for "temp" staging (default: system temp)
        "spool_max_size": 0,  # Keep "temp" staging buffers in memory up to N bytes
    },
    "http_authenticator": {
        # None: dc.simple_dc.SimpleDomainController(user_mapping)
        "domain_controller": None,
    },
    #: Anonymous access; authentication is left to a front end or a config file
    "simple_dc": {"user_mapping": {"*": True}},
    "lock_storage": True,  # True: use LockManager(lock_storage.LockStorageDict)
    "property_manager": True,  # True: use property_manager.PropertyManager
    #: Verbose Output
    #: 0 - no output
    #: 1 - no output (excepting application exceptions)
    #: 2 - show warnings
    #: 3 - show single line request summaries (for HTTP logging)
    #: 4 - show additional events
    #: 5 - show full request/response header info (HTTP Logging)
    "verbose": DEFAULT_VERBOSE,
    #: Log options
    "logging": {
        "enable": None,  # True: activate 'wsgidav' logger (in library mode)
        "logger_date_format": DEFAULT_LOGGER_DATE_FORMAT,
        "logger_format": DEFAULT_LOGGER_FORMAT,
        "enable_loggers": [],
        "debug_methods": [],
    },
}
