"""Exception hierarchy for SGQ–RNC."""


class SgqRncError(Exception):
    """Base class for all SGQ–RNC errors."""


class WorkbookReadError(SgqRncError):
    """A spreadsheet could not be opened or read."""


class ConfigurationError(SgqRncError):
    """Required settings for the cloud store are missing."""


class StorageError(SgqRncError):
    """A cloud store write or delete failed."""
