"""
Top-level package for the RSVP Collector service.

This file makes ``rsvp_collector`` a Python package so that modules
within ``app`` can be imported using fully qualified names like
``rsvp_collector.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
