"""reqgraph.server - Flask REST API server.

Provides a thin REST wrapper over ``RequirementsBackend``.
"""

from reqgraph.server.app import create_app

__all__ = ["create_app"]
