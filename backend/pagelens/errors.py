class PageAuditError(Exception):
    """Base class for errors raised inside the analysis pipeline."""


class CaptureError(PageAuditError):
    """The browser returned no image data."""


class OracleError(PageAuditError):
    """The oracle is not configured or sent back nothing usable."""
