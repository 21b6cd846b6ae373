"""Domain-specific exceptions for Ops Core.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from OpsCoreError for easy catching.
"""


class OpsCoreError(Exception):
    """Base exception for all Ops Core errors.

    Users can catch this exception to handle any error raised by the
    aggregation pipelines.
    """

    pass


class ConfigError(OpsCoreError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - The category taxonomy file cannot be loaded or parsed
    - A taxonomy is missing required buckets
    - A label is mapped to more than one bucket on the same level
    """

    pass


class DataQualityError(OpsCoreError):
    """Raised when input data does not have the expected shape.

    This exception is raised when:
    - Required columns are missing from a ledger export
    - A ledger row has a non-numeric year, month or amount
    """

    pass


class ETLError(OpsCoreError):
    """Raised when an aggregation run fails.

    This is the parent of the fatal, run-aborting failures: the input cannot
    be read, the output cannot be written, or there is no data at all.
    """

    pass


class ExtractionError(ETLError):
    """Raised when raw records or ledger entries cannot be read.

    This exception is raised when:
    - A bronze file cannot be opened
    - A bronze file cannot be parsed as JSON lines / CSV
    """

    pass


class StorageError(ETLError):
    """Raised when an aggregate table cannot be read back or written."""

    pass


class NoDataError(ETLError):
    """Raised when a P&L rollup is requested for a period without ledger entries.

    An empty period is a data-completeness signal, not a zeroed result.
    """

    pass
