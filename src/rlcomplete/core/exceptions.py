"""Custom exceptions for rlcomplete."""


class RLCompleteError(Exception):
    """Base exception for all rlcomplete errors."""


class ConfigError(RLCompleteError):
    """Configuration error."""


class InvalidArgument(RLCompleteError, ValueError):
    """A caller passed an argument outside its contract."""


class ResponseTimeout(RLCompleteError, TimeoutError):
    """The engine did not produce a complete response in time."""


class ProtocolViolation(RLCompleteError):
    """Malformed count or offset fields in an engine response."""


class PreconditionViolation(RLCompleteError):
    """Session state no longer matches the requesting context."""


class EnvironmentMismatch(RLCompleteError):
    """The configured shell is not the expected completion engine."""


class SessionError(RLCompleteError):
    """Engine spawn failure or unexpected engine exit."""
