"""build-launcher - keeps an external build installed, verified and runnable."""

__version__ = "0.1.0"
