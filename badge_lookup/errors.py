"""Error taxonomy shared by the server and serverless entry points."""

from typing import Dict, Optional


class BadgeLookupError(Exception):
    """Base error; carries the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.message}


class ConfigurationError(BadgeLookupError):
    """Required Airtable settings are absent."""

    status_code = 500


class ValidationError(BadgeLookupError):
    """Client input is malformed (e.g. empty userId)."""

    status_code = 400


class UpstreamError(BadgeLookupError):
    """A fetch or lookup against Airtable failed."""

    status_code = 500
    public_message = "Failed to fetch badges"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.public_message, "details": self.message}
