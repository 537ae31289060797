"""
server_cli
==========

:Copyright: Licensed under the MIT license, see LICENSE file in this package.

Standalone server that publishes a REST backend over WebDAV.

These tasks are performed:

    - Set up the configuration from defaults, configuration file, and command line
      options.
    - Create a RestDAVProvider for the configured backend and mount it on '/'.
    - Instantiate the WsgiDAVApp object (which is a WSGI application)
    - Start a WSGI server for this WsgiDAVApp object

Configuration is defined like this:

    1. Get the name of a configuration file from command line option
       ``--config-file=FILENAME`` (or short ``-cFILENAME``).
       If this option is omitted, we use ``restdav.yaml`` in the current
       directory.
    2. Set reasonable default settings.
    3. If configuration file exists: read and use it to overwrite defaults.
    4. If command line options are passed, use them to override settings:

       ``--host`` option overrides ``hostname`` setting.

       ``--port`` option overrides ``port`` setting.

       ``--root=FOLDER`` option publishes FOLDER through the demo
       ``LocalDirAPI`` backend.

       ``--memory`` option publishes an empty in-memory backend.
"""

import argparse
import copy
import logging
import os
import platform
import sys
from pprint import pformat

import json5
import yaml
from wsgidav import util as dav_util
from wsgidav.wsgidav_app import WsgiDAVApp

from restdav import __version__, util
from restdav.default_conf import DEFAULT_CONFIG, DEFAULT_VERBOSE
from restdav.local_api import LocalDirAPI
from restdav.memory_api import MemoryAPI
from restdav.rest_dav_provider import RestDAVProvider
from restdav.staging import make_staging_provider

__docformat__ = "reStructuredText"

#: Try this config files if no --config=... option is specified
DEFAULT_CONFIG_FILES = ("restdav.yaml", "restdav.json")

_logger = logging.getLogger("restdav")


class FullExpandedPath(argparse.Action):
    """Expand user- and relative-paths"""

    def __call__(self, parser, namespace, values, option_string=None):
        new_val = os.path.abspath(os.path.expanduser(values))
        setattr(namespace, self.dest, new_val)


def _init_command_line_options():
    """Parse command line options into a dictionary."""
    description = """\

Run a WebDAV server that publishes a whole-object REST backend.

Examples:

  Publish folder '/temp' through the demo backend (no config file used):
    restdav --port=80 --host=0.0.0.0 --root=/temp

  Publish an in-memory backend, staging buffers in RAM:
    restdav --memory --staging=memory

  Run using a specific configuration file:
    restdav --port=80 --host=0.0.0.0 --config=~/my_restdav.yaml

  If no config file is specified, the application will look for a file named
  'restdav.yaml' in the current directory.
  """

    epilog = """\
Licensed under the MIT license.
"""

    parser = argparse.ArgumentParser(
        prog="restdav",
        description=description,
        epilog=epilog,
        allow_abbrev=False,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        help="port to serve on (default: 8080)",
    )
    parser.add_argument(
        "-H",  # '-h' conflicts with --help
        "--host",
        help=(
            "host to serve from (default: localhost). 'localhost' is only "
            "accessible from the local computer. Use 0.0.0.0 to make your "
            "application public"
        ),
    )

    backend_group = parser.add_mutually_exclusive_group()
    backend_group.add_argument(
        "-r",
        "--root",
        dest="root_path",
        action=FullExpandedPath,
        help="path to a file system folder to publish through the demo backend.",
    )
    backend_group.add_argument(
        "--memory",
        action="store_true",
        help="publish an empty in-memory backend.",
    )

    parser.add_argument(
        "--readonly",
        action="store_true",
        help="reject all write requests.",
    )
    parser.add_argument(
        "--staging",
        choices=("temp", "memory"),
        help="where open files keep their local copy (default: temp).",
    )
    parser.add_argument(
        "--staging-dir",
        action=FullExpandedPath,
        help="folder for temporary staging files (default: system temp folder).",
    )
    parser.add_argument(
        "--server",
        choices=SUPPORTED_SERVERS.keys(),
        help="type of pre-installed WSGI server to use (default: cheroot).",
    )

    qv_group = parser.add_mutually_exclusive_group()
    qv_group.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=3,
        help="increment verbosity by one (default: %(default)s, range: 0..5)",
    )
    qv_group.add_argument(
        "-q", "--quiet", default=0, action="count", help="decrement verbosity by one"
    )

    qv_group = parser.add_mutually_exclusive_group()
    qv_group.add_argument(
        "-c",
        "--config",
        dest="config_file",
        action=FullExpandedPath,
        help=(
            f"configuration file (default: {DEFAULT_CONFIG_FILES} in current directory)"
        ),
    )
    qv_group.add_argument(
        "--no-config",
        action="store_true",
        help=f"do not try to load default {DEFAULT_CONFIG_FILES}",
    )

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="print version info and exit (may be combined with --verbose)",
    )

    args = parser.parse_args()

    args.verbose -= args.quiet
    del args.quiet

    if args.root_path and not os.path.isdir(args.root_path):
        msg = f"{args.root_path} is not a directory"
        parser.error(msg)

    if args.version:
        if args.verbose >= 4:
            version_info = "RestDAV/{} {}/{}({} bit) {}".format(
                __version__,
                platform.python_implementation(),
                util.PYTHON_VERSION,
                "64" if sys.maxsize > 2**32 else "32",
                platform.platform(aliased=True),
            )
            version_info += f"\nPython from: {sys.executable}"
        else:
            version_info = f"{__version__}"
        print(version_info)
        sys.exit()

    if args.no_config:
        pass
        # ... else ignore default config files
    elif args.config_file is None:
        # If --config was omitted, use default (if it exists)
        for filename in DEFAULT_CONFIG_FILES:
            defPath = os.path.abspath(filename)
            if os.path.exists(defPath):
                if args.verbose >= 3:
                    print(f"Using default configuration file: {defPath}")
                args.config_file = defPath
                break
    else:
        # If --config was specified convert to absolute path and assert it exists
        args.config_file = os.path.abspath(args.config_file)
        if not os.path.isfile(args.config_file):
            parser.error(
                f"Could not find specified configuration file: {args.config_file}"
            )

    # Convert args object to dictionary
    cmdLineOpts = args.__dict__.copy()
    if args.verbose >= 5:
        print("Command line args:")
        for k, v in cmdLineOpts.items():
            print(f"    {k:>12}: {v}")
    return cmdLineOpts, parser


def _read_config_file(config_file):
    """Read configuration file options into a dictionary."""

    config_file = os.path.abspath(config_file)

    if not os.path.exists(config_file):
        raise RuntimeError(f"Couldn't open configuration file {config_file!r}.")

    if config_file.endswith(".json"):
        with open(config_file, encoding="utf-8-sig") as fp:
            conf = json5.load(fp)

    elif config_file.endswith(".yaml"):
        with open(config_file, encoding="utf-8-sig") as fp:
            conf = yaml.safe_load(fp)

    else:
        raise RuntimeError(
            f"Unsupported config file format (expected yaml or json): {config_file}"
        )

    conf["_config_file"] = config_file
    conf["_config_root"] = os.path.dirname(config_file)
    return conf


def make_rest_dav_provider(opts, *, config_root=None):
    """Create a RestDAVProvider from the `rest_dav_provider` config section."""
    backend = opts.get("backend") or "local"
    if backend == "memory":
        api = MemoryAPI()
    elif backend == "local":
        root = opts.get("root")
        if not root:
            raise ValueError("Option `rest_dav_provider.root` is required for 'local'")
        root = os.path.expanduser(root)
        if config_root and not os.path.isabs(root):
            root = os.path.join(config_root, root)
        api = LocalDirAPI(root)
    else:
        raise ValueError(
            f"Invalid backend option {backend!r} (expected 'local' or 'memory')"
        )
    return RestDAVProvider(
        api,
        readonly=bool(opts.get("readonly")),
        staging=make_staging_provider(opts),
    )


def _init_config():
    """Setup configuration dictionary from default, command line and configuration file."""
    cli_opts, parser = _init_command_line_options()
    cli_verbose = cli_opts["verbose"]

    # Set config defaults
    config = copy.deepcopy(DEFAULT_CONFIG)
    config["_config_file"] = None
    config["_config_root"] = os.getcwd()

    # Configuration file overrides defaults
    config_file = cli_opts.get("config_file")
    if config_file:
        file_opts = _read_config_file(config_file)
        dav_util.deep_update(config, file_opts)
        if cli_verbose != DEFAULT_VERBOSE and "verbose" in file_opts:
            if cli_verbose >= 2:
                print(
                    "Config file defines 'verbose: {}' but is overridden by command line: {}.".format(
                        file_opts["verbose"], cli_verbose
                    )
                )
            config["verbose"] = cli_verbose
    else:
        if cli_verbose >= 2:
            print("Running without configuration file.")

    # Command line overrides file
    if cli_opts.get("port"):
        config["port"] = cli_opts.get("port")
    if cli_opts.get("host"):
        config["host"] = cli_opts.get("host")
    if cli_opts.get("server") is not None:
        config["server"] = cli_opts.get("server")

    # Command line overrides file only if -v or -q where passed:
    if cli_opts.get("verbose") != DEFAULT_VERBOSE:
        config["verbose"] = cli_opts.get("verbose")

    rest_opts = config["rest_dav_provider"]
    if cli_opts.get("root_path"):
        rest_opts["backend"] = "local"
        rest_opts["root"] = cli_opts.get("root_path")
    elif cli_opts.get("memory"):
        rest_opts["backend"] = "memory"
    if cli_opts.get("readonly"):
        rest_opts["readonly"] = True
    if cli_opts.get("staging"):
        rest_opts["staging"] = cli_opts.get("staging")
    if cli_opts.get("staging_dir"):
        rest_opts["staging_dir"] = cli_opts.get("staging_dir")

    if not config["provider_mapping"]:
        if rest_opts["backend"] == "local" and not rest_opts.get("root"):
            parser.error("No backend defined (use --root, --memory, or --config).")
        try:
            config["provider_mapping"]["/"] = make_rest_dav_provider(
                rest_opts, config_root=config["_config_root"]
            )
        except ValueError as e:
            parser.error(str(e))

    if config["verbose"] >= 5:
        config_cleaned = dav_util.purge_passwords(config)
        print(
            "Configuration({}):\n{}".format(
                cli_opts["config_file"], pformat(config_cleaned)
            )
        )

    return cli_opts, config


def _run_cheroot(app, config, _server):
    """Run RestDAV using cheroot.server (https://cheroot.cherrypy.dev/)."""
    from cheroot import wsgi

    version = (
        f"{util.public_restdav_info} {dav_util.public_wsgidav_info} "
        f"{wsgi.Server.version} {dav_util.public_python_info}"
    )

    _logger.info(f"Running {version}")
    _logger.info(f"Serving on http://{config['host']}:{config['port']} ...")

    server_args = {
        "bind_addr": (config["host"], config["port"]),
        "wsgi_app": app,
        "server_name": version,
        "numthreads": 50,
    }
    # Override or add custom args
    custom_args = dav_util.get_dict_value(config, "server_args", as_dict=True)
    server_args.update(custom_args)

    server = wsgi.Server(**server_args)
    try:
        server.start()
    except KeyboardInterrupt:
        _logger.warning("Caught Ctrl-C, shutting down...")
    finally:
        server.stop()
    return


def _run_wsgiref(app, config, _server):
    """Run RestDAV using wsgiref.simple_server (https://docs.python.org/3/library/wsgiref.html)."""
    from wsgiref.simple_server import WSGIRequestHandler, make_server

    version = WSGIRequestHandler.server_version
    version = f"{util.public_restdav_info} {version}"
    _logger.info(f"Running {version} ...")

    _logger.warning(
        "WARNING: This single threaded server (wsgiref) is not meant for production."
    )
    WSGIRequestHandler.server_version = version
    httpd = make_server(config["host"], config["port"], app)
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        _logger.warning("Caught Ctrl-C, shutting down...")
    return


SUPPORTED_SERVERS = {
    "cheroot": _run_cheroot,
    "wsgiref": _run_wsgiref,
}


def log_published_tree(fs):
    """Log all objects of a RestFileSystem (DEBUG level), like `ls -R`."""
    count = 0
    for top, entries in fs.walk():
        for entry in entries:
            name = util.join_name(top, entry.name)
            if entry.is_dir():
                _logger.debug(f"  {name}/")
            else:
                _logger.debug(f"  {name} ({entry.info().size} bytes)")
            count += 1
    _logger.debug(f"{count} objects published by {fs.api!r}")
    return count


def run():
    cli_opts, config = _init_config()

    config["logging"]["enable"] = True
    util.init_logging(config)

    if config["verbose"] >= 4:
        for share, provider in config["provider_mapping"].items():
            if isinstance(provider, RestDAVProvider):
                _logger.debug(f"Contents of share {share!r}:")
                log_published_tree(provider.fs)

    app = WsgiDAVApp(config)

    server = config["server"]
    handler = SUPPORTED_SERVERS.get(server)
    if not handler:
        raise RuntimeError(
            "Unsupported server type {!r} (expected {!r})".format(
                server, "', '".join(SUPPORTED_SERVERS.keys())
            )
        )

    _logger.info(f"Publishing {config['provider_mapping']}")
    handler(app, config, server)
    return


if __name__ == "__main__":
    run()
