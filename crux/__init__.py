"""Crux AI - turn a resume into a deployed portfolio site."""

__version__ = "1.0.0"
