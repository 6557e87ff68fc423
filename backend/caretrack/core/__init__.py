"""Core module - logging setup and domain errors."""

from .errors import (
    CareTrackError,
    InvalidIdentifierError,
    UnsupportedFormatError,
    InvalidEntryError,
    NoTrackingDataError,
    RecordNotFoundError,
    EntryNotFoundError,
    ModelUnavailableError,
    StoreError,
)

__all__ = [
    'CareTrackError',
    'InvalidIdentifierError',
    'UnsupportedFormatError',
    'InvalidEntryError',
    'NoTrackingDataError',
    'RecordNotFoundError',
    'EntryNotFoundError',
    'ModelUnavailableError',
    'StoreError',
]
