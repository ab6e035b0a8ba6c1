"""Common exceptions for the flicker system."""


class FlickerError(Exception):
    """Base exception for all flicker errors."""

    pass


class ConfigurationError(FlickerError):
    """Configuration error (missing or malformed field)."""

    pass


class ValidationError(FlickerError):
    """Parameter validation error."""

    pass


class ResolutionError(FlickerError):
    """A board or pin named in the configuration could not be found."""

    pass


class PinIOError(FlickerError):
    """Reading or writing a pin failed."""

    pass


class FlickerStateError(FlickerError):
    """Operation not valid in the current lifecycle state."""

    pass


class NotSupportedError(FlickerError):
    """Capability not supported by this service."""

    pass
