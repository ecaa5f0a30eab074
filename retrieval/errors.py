class ShlokError(Exception):
    """Base class for corpus loading and selection failures."""


class SourceUnavailable(ShlokError, FileNotFoundError):
    """No readable corpus file at the primary or fallback location."""


class EmptyCorpus(ShlokError):
    """The corpus was read but holds no valid records."""


class OutOfRange(ShlokError, IndexError):
    """An index outside the bounds of the corpus."""
