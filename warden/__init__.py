"""Warden command line interface."""
