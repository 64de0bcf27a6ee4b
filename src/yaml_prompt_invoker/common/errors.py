"""Error taxonomy for template loading, binding and remote invocation."""
from __future__ import annotations


class PromptInvokerError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationMissing(PromptInvokerError):
    """One or more required settings are missing or empty."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__("Missing required settings: " + ", ".join(self.missing))


class ConfigurationInvalid(PromptInvokerError):
    """The settings file exists but cannot be read as settings."""


class TemplateNotFound(PromptInvokerError):
    """A template file does not exist at the expected path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"YAML prompt template not found at: {path}")


class MalformedTemplate(PromptInvokerError):
    """A template file could not be turned into a usable template."""


class MissingVariable(PromptInvokerError):
    """A required variable has neither an argument nor a default."""

    def __init__(self, name: str, template: str | None = None) -> None:
        self.name = name
        self.template = template
        where = f" for template '{template}'" if template else ""
        super().__init__(f"Missing value for variable '{name}'{where}")


class UndeclaredPlaceholder(PromptInvokerError):
    """The template body references a variable it never declares."""

    def __init__(self, name: str, template: str | None = None) -> None:
        self.name = name
        self.template = template
        where = f" in template '{template}'" if template else ""
        super().__init__(f"Placeholder '{{{{{name}}}}}'{where} is not a declared input variable")


class EndpointUnreachable(PromptInvokerError):
    """The chat-completion endpoint could not be reached."""


class AuthenticationFailed(PromptInvokerError):
    """The endpoint rejected the configured credential."""


class RateLimited(PromptInvokerError):
    """The endpoint throttled the request."""

    def __init__(self, message: str, retry_after: str | None = None) -> None:
        self.retry_after = retry_after
        if retry_after:
            unit = "s" if retry_after.isdigit() else ""
            message = f"{message} (retry after {retry_after}{unit})"
        super().__init__(message)


class CompletionFailed(PromptInvokerError):
    """The endpoint answered with an error status or an unusable body."""
