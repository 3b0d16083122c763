"""Flake registry HTTP API.

Lists and searches published flake releases backed by PostgreSQL and an
OpenSearch index.
"""

__version__ = "0.1.0"
