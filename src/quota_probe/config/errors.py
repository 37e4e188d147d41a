from __future__ import annotations

"""Exception types for configuration handling."""


class ConfigurationError(RuntimeError):
    """Raised when a probe setting is missing, unreadable or malformed."""

    @classmethod
    def invalid_format(cls, name: str, received: str, expected: str = "") -> "ConfigurationError":
        message = f"{name} has invalid format (received {received!r})"
        if expected:
            message += f"; expected {expected}"
        return cls(message)

    @classmethod
    def load_failed(cls, resource: str, location: str = "") -> "ConfigurationError":
        message = f"Could not read {resource}"
        if location:
            message += f" from {location}"
        return cls(message)


__all__ = ["ConfigurationError"]
