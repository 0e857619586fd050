"""Custom exceptions for lyrics3d."""

class Lyrics3DError(Exception):
    """Base exception for lyrics3d."""
    pass

class ConfigError(Lyrics3DError):
    """Invalid configuration value."""
    pass

class ValidationError(Lyrics3DError):
    """Invalid input parameters."""
    pass
