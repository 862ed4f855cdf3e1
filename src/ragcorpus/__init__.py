"""Build-time RAG corpus generator for static sites."""

__version__ = "0.1.0"
