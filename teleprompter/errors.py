"""Exceptions raised by the teleprompter clients."""


class TeleprompterError(Exception):
    """Base class for all teleprompter errors."""


class InitializationError(TeleprompterError):
    """Raised when the registry client has no base URL or dispatcher."""

    def __init__(self, message: str = "RegistryClient was not initialized correctly"):
        super().__init__(message)


class HttpStatusError(TeleprompterError):
    """Raised when the registry answers with a non-success status."""

    def __init__(self, status: int):
        super().__init__(f"HTTP error! status: {status}")
        self.status = status


class TemplateNotFoundError(TeleprompterError, KeyError):
    """Raised when a prompt to render is missing from the cache."""

    def __init__(self, prompt_id: str):
        super().__init__(f"Prompt '{prompt_id}' not found")
        self.prompt_id = prompt_id

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class VersionNotFoundError(TeleprompterError):
    """Raised when a rollback targets a version the registry does not have."""

    def __init__(self, prompt_id: str, version: int):
        super().__init__(f"Prompt '{prompt_id}' has no version {version}")
        self.prompt_id = prompt_id
        self.version = version


class UnknownMessageError(TeleprompterError, ValueError):
    """Raised for a change notification with an unrecognised type tag."""

    def __init__(self, tag: object):
        super().__init__(f"Unknown message type: {tag!r}")
        self.tag = tag
