"""umlogger version information."""

__version__ = "0.3.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

APP_NAME = "umlogger"
DESCRIPTION = "Command-line logger for UM25C-style USB power meters"
LICENSE = "MIT"
