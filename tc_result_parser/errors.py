"""Exceptions raised by the report converter."""


class ReportConverterError(Exception):
    """Base class for converter errors."""


class MissingBoundaryError(ReportConverterError):
    """The archive does not declare a multipart boundary."""


class ResultLogError(ReportConverterError):
    """The mandatory root log is missing or cannot be parsed."""


class BatchInputError(ReportConverterError):
    """Mandatory parameters for the command script are missing."""
