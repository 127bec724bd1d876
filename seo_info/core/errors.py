"""Exceptions that cross module boundaries."""


class AnalysisError(RuntimeError):
    """Pipeline-fatal failure: the page cannot be analyzed at all."""


class ReportGenerationError(RuntimeError):
    """A report emitter could not write its file."""
