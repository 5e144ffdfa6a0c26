"""Exception types raised by linefinder."""


class LineDetectionError(Exception):
    """Base class for all linefinder errors."""


class ConfigurationError(LineDetectionError, ValueError):
    """Invalid detection parameters or an image that is not binary."""


class TransformError(LineDetectionError):
    """A single preprocessing step failed."""


class PreprocessingError(LineDetectionError):
    """Preprocessing could not produce a binary image."""


class SessionStateError(LineDetectionError, RuntimeError):
    """Operation not allowed in the session's current state."""
