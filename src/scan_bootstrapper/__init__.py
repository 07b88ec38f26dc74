"""Scan Bootstrapper - pre/post build steps for static-analysis runs."""

__version__ = "0.1.0"
