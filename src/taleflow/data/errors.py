"""Custom exceptions for project loading and validation."""


class DataError(Exception):
    """Base exception for the data layer."""


class DataLoadError(DataError):
    """Raised when a project file is missing or is not valid JSON."""


class DataValidationError(DataError):
    """Raised when project content fails structural validation."""
