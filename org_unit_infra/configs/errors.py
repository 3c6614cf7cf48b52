"""Error types raised while validating OU deployment configuration."""


class ConfigurationError(Exception):
    """Fatal configuration problem detected before any resource is declared.

    Raised for missing or malformed environment values, account ids that do
    not map to the expected OU role, export name collisions and unknown host
    networks. The message always names the offending parameter(s).
    """
