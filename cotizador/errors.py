"""
Error taxonomy for the analyze and save flows.

Every CotizadorError is rendered at the HTTP boundary as
{"error": message, "details": details} with the class status code.
ExtractionFailure never leaves the extractor; it always ends in the
fallback despiece.
"""

from typing import Optional


class CotizadorError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class MissingImageError(CotizadorError):
    status_code = 400

    def __init__(self, message: str = "No se recibió ninguna imagen", details: Optional[str] = None):
        super().__init__(message, details)


class ImageTooLargeError(CotizadorError):
    status_code = 413


class UpstreamError(CotizadorError):
    """Vision model call failed. details carries status + body."""
    status_code = 500


class MissingProjectError(CotizadorError):
    status_code = 400

    def __init__(self, message: str = "Missing project in body", details: Optional[str] = None):
        super().__init__(message, details)


class PersistenceError(CotizadorError):
    """Google Sheets write failed."""
    status_code = 500


class ExtractionFailure(Exception):
    """Model output could not be turned into a piece list."""
