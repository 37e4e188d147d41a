"""Helper modules for runtime configuration."""

from .dotenv_loader import KEY_PREFIX, parse_dotenv_line, read_dotenv

__all__ = ["KEY_PREFIX", "parse_dotenv_line", "read_dotenv"]
