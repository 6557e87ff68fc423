"""
Error types raised by CareTrack services.

Each error carries the HTTP status the API layer renders it with.
"""

from fastapi import status


class CareTrackError(Exception):
    """Base class for all domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidIdentifierError(CareTrackError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid patient ID"


class UnsupportedFormatError(CareTrackError):
    """Raw import payload matches none of the known export shapes."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = (
        "Unsupported format. Use a SeizureTracker export or a JSON document "
        "with an 'entries' array."
    )


class InvalidEntryError(CareTrackError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Entry date is required"


class NoTrackingDataError(CareTrackError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "No tracking data available"


class RecordNotFoundError(CareTrackError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "No tracking data found"


class EntryNotFoundError(RecordNotFoundError):
    default_message = "Tracking entry not found"


class ModelUnavailableError(CareTrackError):
    """The language model could not be reached or returned nothing usable.

    Never propagated past the insight generator.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Language model unavailable"


class StoreError(CareTrackError):
    """The document store failed to read or write."""

    default_message = "Storage failure"
