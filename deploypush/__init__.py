"""Deploy Push — build, verify, sign and copy deployment profiles to remote nodes."""

__version__ = "0.1.0"
