"""CareTrack - patient health-data backend."""

__version__ = "1.0.0"
