"""Interfaces for code built on top of the engine."""

from warden_core.interfaces.access import AccessControl

__all__ = ["AccessControl"]
