"""Shared helpers: slugs, logging setup, markdown mirror."""
