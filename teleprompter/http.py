"""HTTP client for the prompt registry API."""

import inspect
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import quote

import httpx
import structlog

from .errors import HttpStatusError, InitializationError, VersionNotFoundError
from .prompt import Prompt, PromptInput

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 30.0

# origin used for dispatchers that have no base_url of their own
DISPATCHER_ORIGIN = "http://dispatcher"


class Dispatcher(Protocol):
    """Anything that can send a request, e.g. a configured ``httpx.AsyncClient``."""

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        ...


@dataclass(frozen=True)
class NetworkTarget:
    """Send requests to a registry at ``base_url``."""

    base_url: str
    timeout: float = DEFAULT_TIMEOUT

    async def send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
            return await client.request(method, path, **kwargs)


@dataclass(frozen=True)
class InjectedDispatcher:
    """Send requests through a caller-owned dispatcher.

    A dispatcher with a ``base_url`` gets the bare path and merges it
    itself. Any other dispatcher (a pre-authenticated binding, or an
    ``httpx.AsyncClient`` mounted on an in-process transport) gets the
    path resolved against a placeholder origin.
    """

    dispatcher: Dispatcher

    async def send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        return await self.dispatcher.request(method, self.url_for(path), **kwargs)

    def url_for(self, path: str) -> str:
        if str(getattr(self.dispatcher, "base_url", "") or ""):
            return path
        return DISPATCHER_ORIGIN + path


Transport = NetworkTarget | InjectedDispatcher


def resolve_transport(
    target: str | Dispatcher | None, timeout: float = DEFAULT_TIMEOUT
) -> Transport | None:
    """Turn a base URL or dispatcher into a transport, or None if neither."""
    if target is None or target == "":
        return None
    if isinstance(target, str):
        return NetworkTarget(base_url=target, timeout=timeout)
    if inspect.iscoroutinefunction(getattr(target, "request", None)):
        return InjectedDispatcher(dispatcher=target)
    raise TypeError(
        f"target must be a base URL or an object with an async request(), "
        f"got {type(target).__name__}"
    )


def _prompt_path(prompt_id: str, *parts: Any) -> str:
    segments = [quote(str(prompt_id), safe="")]
    segments.extend(quote(str(p), safe="") for p in parts)
    return "/prompts/" + "/".join(segments)


class RegistryClient:
    """Versioned CRUD against a remote prompt registry.

    Configure with a base URL or with an injected dispatcher. A client
    built with neither fails every call with InitializationError.
    """

    def __init__(self, target: str | Dispatcher | None = None, *, timeout: float = DEFAULT_TIMEOUT):
        """
        Initialize the client.

        Args:
            target: Registry base URL, or a dispatcher exposing
                    ``async request(method, url, **kwargs)``.
            timeout: Request timeout in seconds when ``target`` is a URL.
        """
        self._transport = resolve_transport(target, timeout)

    @property
    def transport(self) -> Transport | None:
        return self._transport

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        if self._transport is None:
            raise InitializationError()

        logger.debug("Registry request", method=method, path=path)
        response = await self._transport.send(method, path, **kwargs)
        if not response.is_success:
            logger.debug(
                "Registry request failed",
                method=method,
                path=path,
                status=response.status_code,
            )
            raise HttpStatusError(response.status_code)
        return response

    async def list_prompts(self) -> list[Prompt]:
        """Get the current version of every prompt."""
        response = await self._request("GET", "/prompts")
        return [Prompt.from_dict(item) for item in response.json()]

    async def get_prompt(self, prompt_id: str) -> Prompt:
        """Get the current version of a prompt."""
        response = await self._request("GET", _prompt_path(prompt_id))
        return Prompt.from_dict(response.json())

    async def get_prompt_versions(self, prompt_id: str) -> list[Prompt]:
        """Get all versions of a prompt, in the order the registry returns them."""
        response = await self._request("GET", _prompt_path(prompt_id, "versions"))
        return [Prompt.from_dict(item) for item in response.json()]

    async def write_prompt(self, prompt: PromptInput | Prompt) -> None:
        """Create a prompt, or add a new version of an existing one."""
        if isinstance(prompt, Prompt):
            prompt = prompt.to_input()
        await self._request("POST", "/prompts", json=prompt.to_dict())
        logger.debug("Wrote prompt", prompt_id=prompt.id)

    async def delete_prompt(self, prompt_id: str) -> None:
        """Delete a prompt."""
        await self._request("DELETE", _prompt_path(prompt_id))
        logger.debug("Deleted prompt", prompt_id=prompt_id)

    async def rollback_prompt(self, prompt_id: str, version: int) -> None:
        """
        Make an earlier version's body current again.

        The registry records the rollback as a new version, so the version
        counter keeps increasing.

        Raises:
            VersionNotFoundError: If ``version`` is not among the prompt's versions.
        """
        versions = await self.get_prompt_versions(prompt_id)
        target = next((p for p in versions if p.version == version), None)
        if target is None:
            logger.warning(
                "Rollback target version not found",
                prompt_id=prompt_id,
                version=version,
                available=[p.version for p in versions],
            )
            raise VersionNotFoundError(prompt_id, version)

        await self.write_prompt(PromptInput(id=prompt_id, body=target.body))
        logger.debug("Rolled back prompt", prompt_id=prompt_id, version=version)

    def __repr__(self) -> str:
        return f"RegistryClient(transport={self._transport!r})"
