#!/usr/bin/env python

from setuptools import find_packages, setup

from restdav._version import __version__

version = __version__

try:
    readme = open("README.md", "rt").read()
except IOError:
    readme = "(Readme file not found. Running from tox/setup.py test?)"

# CherryPy's cheroot is the preferred server for the stand-alone mode
# (`restdav.server.server_cli.py`).
install_requires = ["WsgiDAV>=4.3", "PyYAML", "json5", "cheroot"]
tests_require = ["pytest", "WebTest"]

setup(
    name="RestDAV",
    version=version,
    description="WebDAV access to whole-object REST storage backends, based on WsgiDAV",
    long_description=readme,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Information Technology",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords="web wsgi webdav rest storage adapter",
    license="MIT",
    packages=find_packages(exclude=["tests"]),
    install_requires=install_requires,
    python_requires=">=3.8",
    py_modules=[],
    zip_safe=False,
    extras_require={"test": tests_require},
    entry_points={"console_scripts": ["restdav = restdav.server.server_cli:run"]},
)
