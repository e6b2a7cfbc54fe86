"""
reqgraph.commands.serve - Run the REST API server.
"""

from __future__ import annotations

import argparse
import logging

from reqgraph.backend import RequirementsBackend
from reqgraph.commands.context import load_settings
from reqgraph.config import int_setting

logger = logging.getLogger(__name__)


def run(args: argparse.Namespace) -> int:
    """Start the Flask development server over the configured backend."""
    from reqgraph.server import create_app

    config, path = load_settings(args)
    host = args.host or config.get("server", {}).get("host", "127.0.0.1")
    port = args.port or int_setting(config, "server", "port", 5000)

    backend = RequirementsBackend.from_config(
        config, base_dir=path.parent if path is not None else None
    )
    app = create_app(backend, config)

    print(
        f"""
======================================
  reqgraph API Server
======================================

Store:      {config.get("store", {}).get("backend", "memory")}
Cache:      {config.get("cache", {}).get("backend", "memory")}
Server:     http://{host}:{port}/api/health

Press Ctrl+C to stop
"""
    )

    try:
        app.run(host=host, port=port, debug=False)
    except KeyboardInterrupt:
        print("\nServer stopped.")
    finally:
        backend.close()
        logger.debug("Backend closed")

    return 0
