"""Process-level exceptions."""


class ConfigurationError(Exception):
    """Raised when the process cannot start with the current configuration."""

    pass


class MissingApiKeysError(ConfigurationError):
    """Raised when no YouTube API keys are configured."""

    pass


class PromptTemplateError(ConfigurationError):
    """Raised when the analysis prompt template cannot be loaded."""

    pass


class UnsupportedModelError(ConfigurationError):
    """Raised when the configured LLM model is not recognised."""

    pass
