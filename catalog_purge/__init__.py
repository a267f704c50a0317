"""
Infrastructure for purging business-partner catalog entries.

Key sanitization, credential protection, configuration, input table reading
and the directory client adapters live here; the job itself is in ``recon``.
"""

from .common import PrintLogger, RUN_ID

__all__ = ["PrintLogger", "RUN_ID"]
