"""Core shared logic for signal generation, scoring, and models.

This package contains pure business logic with no I/O dependencies
(no database, HTTP, or cache access). Collaborators are described by
the protocols in ``signal_core.protocols`` and injected by the service
layer (``signal_service``).
"""
