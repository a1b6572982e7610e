"""
Exception types for the search trend calendar.

Validation problems are raised before any network call; language-model
failures are raised at the API boundary. Web-search failures never raise.
"""


class TrendCalendarError(Exception):
    """Base class for all errors raised by this package."""


class DatasetError(TrendCalendarError):
    """The keyword dataset could not be parsed."""


class ConfigurationError(TrendCalendarError):
    """A required credential or setting is missing."""


class InsightValidationError(TrendCalendarError):
    """The insight request is invalid (no keywords, too many, or no data)."""


class InsightGenerationError(TrendCalendarError):
    """The language-model call failed or returned an unusable body."""


class InsightStateError(TrendCalendarError):
    """An insight request was started outside the idle state."""
