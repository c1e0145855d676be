"""
Exception classes for AnaCam.

Geometry errors are raised for misuse of the pure calculation layer and are
never retryable. Catalog errors come from the CSV loaders.
"""


class AnacamError(Exception):
    """Base class for every AnaCam error."""


class GeometryError(AnacamError):
    """Base class for errors raised by the geometry core and the selection layer."""


class InvalidParameter(GeometryError):
    """
    A parameter is outside its valid domain.

    Attributes:
        name: parameter name (e.g. ``squeeze_factor``)
        value: offending value
        reason: short human readable reason
    """

    def __init__(self, name, value, reason="must be positive"):
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {name}={value!r}: {reason}")


class MissingSelection(GeometryError):
    """Metrics were requested for a sensor slot that holds no sensor."""

    def __init__(self, slot):
        self.slot = slot
        super().__init__(f"No sensor selected for slot {slot}")


class CatalogError(AnacamError):
    """A camera or lens catalog could not be read."""

    def __init__(self, source, reason):
        self.source = source
        self.reason = reason
        super().__init__(f"{reason} ({source})")
