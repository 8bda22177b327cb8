"""Command line application for the FTP password rotator."""

__version__ = "0.1.0"
