"""
Model Context Protocol integration for Polyglot Code.
"""

from .server import PolyglotServer, create_server

__all__ = ["PolyglotServer", "create_server"]
