"""
Errors raised by the financial reports engine.

An unbalanced balance sheet or trial balance is not an error; it is
reported through the `balanced` flag. Missing records are not errors
either: they produce zeroed figures.
"""


class ReportError(Exception):
    """Base class for report generation failures."""


class InvalidPeriodError(ReportError):
    """Start after end, or a malformed date."""


class UnknownComparisonModeError(ReportError):
    """Comparison mode not supported by the requested report."""


class UnknownCashFlowMethodError(ReportError):
    pass


class UnknownTrendMetricError(ReportError):
    pass


class LedgerSourceError(ReportError):
    """The data-access collaborator failed (connection, timeout, query)."""


class AggregationError(ReportError):
    """An arithmetic invariant was violated. Indicates a bug; never corrected silently."""


class ReportTimeoutError(ReportError):
    """The report deadline expired. In-flight queries were cancelled."""
