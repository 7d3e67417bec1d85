"""Exceptions raised by the live-wire engine."""


class ConfigurationError(Exception):
    """Raised when the engine is used before it is configured.

    Covers pixel data supplied before the image dimensions, invalid
    dimensions, and invalid LiveWireConfig values.
    """
