"""Errors that abort a corpus build.

Per-page problems are not exceptions; they surface as ``PageSkipped``
results from the page pipeline.
"""


class RagCorpusError(Exception):
    """Base class for fatal build errors."""


class ConfigError(RagCorpusError):
    """Configuration is missing, unreadable or invalid."""


class TokenizerError(RagCorpusError):
    """The token encoding could not be loaded or failed to encode text."""
