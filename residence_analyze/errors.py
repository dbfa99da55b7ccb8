"""Exception types raised by the analysis core.

Components raise; only the CLI (or the Streamlit page) decides whether a
failure aborts the whole run.
"""

from __future__ import annotations


class ResidenceAnalyzeError(Exception):
    """Base class for all analysis failures."""


class InvalidInputError(ResidenceAnalyzeError, ValueError):
    """Empty or malformed event sequence."""


class InvalidArgumentError(ResidenceAnalyzeError, ValueError):
    """Non-positive interval, tolerance or threshold."""


class TimeOrderingViolation(ResidenceAnalyzeError):
    """Two adjacent events are chronologically inverted."""


class UnknownTagError(ResidenceAnalyzeError, KeyError):
    """No location group exists for the requested tag."""

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0]) if self.args else ""


class EmptyAreaError(ResidenceAnalyzeError, ValueError):
    """A midpoint was requested for an area without members."""
