"""Toolkit for unpacking and repacking splash LOGO containers."""

from oplogo.version import __version__
