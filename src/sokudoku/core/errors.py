"""Error taxonomy for the chunking and playback core.

These are raised by the inner layers. ``ReaderSession`` recovers from each
of them so nothing crosses the public interface.
"""


class SokudokuError(Exception):
    """Base class for all sokudoku errors."""


class SegmentationUnavailable(SokudokuError):
    """The segmentation provider cannot process the input."""


class ConfigurationInvalid(SokudokuError, ValueError):
    """A rate or length setting is out of range."""


class IndexOutOfRange(SokudokuError, IndexError):
    """A seek target lies outside the chunk sequence."""
