"""
reqgraph.config.defaults - Default configuration values.
"""

CONFIG_FILENAME = ".reqgraph.toml"

ENV_PREFIX = "REQGRAPH_"

DEFAULT_CONFIG = {
    "store": {
        # "memory" or "neo4j"
        "backend": "memory",
        # JSON snapshot for the memory backend; empty keeps the graph in RAM
        # (CLI commands then use .reqgraph/graph.json next to the config)
        "snapshot": "",
        "uri": "neo4j://localhost:7687",
        "user": "neo4j",
        "password": "",
        "database": "",
    },
    "cache": {
        # "memory", "redis" or "none"
        "backend": "memory",
        "url": "redis://localhost:6379/0",
        "ttl_requirements": 120,
        "ttl_documents": 300,
    },
    "mirror": {
        "enabled": False,
        "workspace": "workspace",
    },
    "refs": {
        # 0 means suffixes widen past 999 without limit
        "max_suffix": 0,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 5000,
    },
    "defaults": {
        "tenant": "default",
    },
    "logging": {
        "level": "INFO",
    },
}
