"""
Application package initializer.

This package contains the main entrypoint for the RSVP service and all
of its submodules.  The code is split into small layers: ``core``
(configuration, logging, errors), ``schemas`` (payload models and the
entry validator), ``storage`` (the interchangeable persistence
backends), ``services`` (orchestration) and ``api`` (HTTP routes).
"""

from .main import app  # noqa: F401
