"""Package version information."""

PACKAGE_VERSION = "0.1.0"
