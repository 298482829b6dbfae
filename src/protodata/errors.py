class ProtodataError(Exception):
    """Base class for all errors raised by protodata."""


class InvariantViolationError(ProtodataError):
    """The schema graph violates the protocol buffers closed type system.

    Raised for wire kinds outside the supported closed set or for references that
    cannot be resolved. This aborts the whole generation run.
    """


class EncodingError(ProtodataError):
    """A data model could not be rendered by the selected encoder."""


class ConfigError(ProtodataError):
    """Invalid generator configuration or plugin parameter."""
