"""teleprompter - Versioned prompt templates over HTTP, mirrored into a key-value cache."""

from .errors import (
    HttpStatusError,
    InitializationError,
    TemplateNotFoundError,
    TeleprompterError,
    UnknownMessageError,
    VersionNotFoundError,
)
from .http import Dispatcher, InjectedDispatcher, NetworkTarget, RegistryClient
from .kv import PromptCache
from .prompt import (
    DeleteMessage,
    Prompt,
    PromptInput,
    UpdateMessage,
    parse_message,
    render_template,
)
from .relay import MessageBatch, QueueMessage, handle_updates
from .store import KVNamespace, MemoryKV, PromptStore

__version__ = "0.1.0"
__all__ = [
    "DeleteMessage",
    "Dispatcher",
    "HttpStatusError",
    "InitializationError",
    "InjectedDispatcher",
    "KVNamespace",
    "MemoryKV",
    "MessageBatch",
    "NetworkTarget",
    "Prompt",
    "PromptCache",
    "PromptInput",
    "PromptStore",
    "QueueMessage",
    "RegistryClient",
    "TemplateNotFoundError",
    "TeleprompterError",
    "UnknownMessageError",
    "UpdateMessage",
    "VersionNotFoundError",
    "handle_updates",
    "parse_message",
    "render_template",
]
