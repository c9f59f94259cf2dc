"""Rusted Warden Mapper - level layout reconstruction from GTFO game logs."""

from rwmapper.version import __version__

__all__ = ["__version__"]
