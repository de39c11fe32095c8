"""Prompt records, change notifications and Mustache rendering."""

import json
import os
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

import chevron

from .errors import UnknownMessageError

UPDATE_TYPE = "prompt-update"
DELETE_TYPE = "prompt-delete"


def _require(data: Mapping[str, Any], key: str) -> Any:
    if key not in data or data[key] is None:
        raise ValueError(f"Prompt data is missing required field '{key}'")
    return data[key]


@dataclass(frozen=True)
class PromptInput:
    """A prompt as submitted to the registry, before it is given a version."""

    id: str
    body: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "body": self.body}


@dataclass(frozen=True)
class Prompt:
    """A versioned prompt template referenced by id.

    The registry assigns ``version``; each write to an id produces a new,
    higher version and older versions are never changed.
    """

    id: str
    body: str
    version: int = 1

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Prompt":
        """Create a Prompt from a decoded JSON object.

        Unknown keys, such as the ``type`` tag on a cached update message,
        are ignored. A null ``version`` counts as missing.
        """
        version = data.get("version")
        return cls(
            id=str(_require(data, "id")),
            body=str(_require(data, "body")),
            version=int(version) if version is not None else 1,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "body": self.body, "version": self.version}

    def to_input(self) -> PromptInput:
        return PromptInput(id=self.id, body=self.body)

    def render(self, context: Mapping[str, Any] | None = None) -> str:
        """Render this prompt's body against ``context``."""
        return render_template(self.body, context)

    def __str__(self) -> str:
        return f"Prompt(id={self.id}, version={self.version})"


@dataclass(frozen=True)
class UpdateMessage:
    """Notification that ``id`` has a new current version."""

    id: str
    body: str
    version: int
    type: Literal["prompt-update"] = field(default=UPDATE_TYPE, init=False)

    @classmethod
    def from_prompt(cls, prompt: Prompt) -> "UpdateMessage":
        return cls(id=prompt.id, body=prompt.body, version=prompt.version)

    @property
    def prompt(self) -> Prompt:
        return Prompt(id=self.id, body=self.body, version=self.version)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "body": self.body,
            "version": self.version,
            "type": self.type,
        }


@dataclass(frozen=True)
class DeleteMessage:
    """Notification that ``id`` was deleted from the registry."""

    id: str
    type: Literal["prompt-delete"] = field(default=DELETE_TYPE, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "type": self.type}


ChangeMessage = UpdateMessage | DeleteMessage


def parse_message(data: Mapping[str, Any] | str | bytes) -> ChangeMessage:
    """Decode a change notification, dispatching on its ``type`` tag.

    Raises:
        UnknownMessageError: If the tag is neither update nor delete.
        ValueError: If a required field is missing.
    """
    if isinstance(data, (str, bytes)):
        data = json.loads(data)

    tag = data.get("type")
    if tag == UPDATE_TYPE:
        prompt = Prompt.from_dict(data)
        return UpdateMessage.from_prompt(prompt)
    if tag == DELETE_TYPE:
        return DeleteMessage(id=str(_require(data, "id")))
    raise UnknownMessageError(tag)


def render_template(body: str, context: Mapping[str, Any] | None = None) -> str:
    """Render a Mustache template in a single pass.

    Variables are HTML-escaped unless written as ``{{{name}}}`` or
    ``{{& name}}``. Sections iterate lists, and falsy or empty values
    omit their section. Partials are not resolved and render as empty.
    """
    return chevron.render(
        template=body,
        data=dict(context or {}),
        # partials only come from partials_dict, never from disk
        partials_path=os.devnull,
        partials_dict={},
    )
