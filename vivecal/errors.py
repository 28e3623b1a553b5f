"""
Errors raised while loading an HTC tracker configuration.

Internal stages raise these; load_htc_config() turns them into a
ConfigStatus so callers only ever see a return code.
"""


class ConfigError(ValueError):
    """Base class for configuration loading failures."""


class TokenizeError(ConfigError):
    """Malformed JSON, undecodable bytes, or token budget exceeded."""


class ConfigParseError(ConfigError):
    """A recognized field could not be decoded."""
