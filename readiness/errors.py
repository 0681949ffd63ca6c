"""Error taxonomy for a scan run.

Only conditions that must stop the whole run are exceptions. Unreadable files
and unavailable external tools are reported as findings instead.
"""

from __future__ import annotations


class ReadinessError(Exception):
    """Base class for all scanner errors."""


class ConfigError(ReadinessError):
    """Rule-set input (custom keywords, keyword file) is missing or malformed."""


class InvariantError(ReadinessError):
    """A programming defect, e.g. an unknown severity or check id."""


class RecordFormatError(ReadinessError):
    """A pipe-delimited finding record could not be decoded."""
