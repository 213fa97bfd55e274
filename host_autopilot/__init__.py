"""Unattended operation of a desktop trading host application."""

__version__ = "0.1.0"
