"""
Exceptions raised by penguinlab.

All of them derive from ``ValueError`` so callers that only guard against bad
input with ``except ValueError`` keep working.
"""
from __future__ import annotations


class InvalidConfiguration(ValueError):
    """Bad split proportions, an empty/incomplete dataset, or a malformed config."""


class EvaluationError(ValueError):
    """Base class for failures of :func:`penguinlab.evaluation.evaluate`."""


class LengthMismatch(EvaluationError):
    """Predicted and observed label sequences differ in length."""


class EmptyInput(EvaluationError):
    """Evaluation was called with zero labels."""


class UnknownLabel(EvaluationError):
    """A label is not part of the explicitly supplied label set."""
