"""Pydantic models and dataclasses for templates and completion results."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class InputVariable(BaseModel):
    """A variable declared by a template, with an optional default."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(min_length=1)
    description: str | None = None
    default: str | None = None
    is_required: bool = True

    @field_validator("default", mode="before")
    @classmethod
    def _stringify_default(cls, v: Any) -> Any:
        # YAML turns bare numbers and booleans into non-strings
        if v is None or isinstance(v, str):
            return v
        return str(v)


class ExecutionSettings(BaseModel):
    """Sampling parameters forwarded to the chat-completion call."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None
    stop: tuple[str, ...] | None = None

    def to_payload(self) -> dict[str, Any]:
        return {k: (list(v) if isinstance(v, tuple) else v) for k, v in self.model_dump().items() if v is not None}


class PromptTemplate(BaseModel):
    """A loaded prompt template. Immutable once constructed."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(min_length=1)
    description: str | None = None
    template_format: Literal["semantic-kernel"] = "semantic-kernel"
    template: str
    input_variables: tuple[InputVariable, ...] = ()
    execution_settings: dict[str, ExecutionSettings] = Field(default_factory=dict)

    @field_validator("template")
    @classmethod
    def _body_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("template body is empty")
        return v

    @model_validator(mode="after")
    def _unique_variables(self) -> "PromptTemplate":
        seen: set[str] = set()
        for var in self.input_variables:
            if var.name in seen:
                raise ValueError(f"input variable '{var.name}' declared more than once")
            seen.add(var.name)
        return self

    @property
    def variables(self) -> dict[str, InputVariable]:
        return {v.name: v for v in self.input_variables}

    @property
    def defaults(self) -> dict[str, str]:
        return {v.name: v.default for v in self.input_variables if v.default is not None}

    @property
    def settings(self) -> ExecutionSettings:
        """The ``default`` execution settings, else the first entry, else empty."""
        if "default" in self.execution_settings:
            return self.execution_settings["default"]
        for s in self.execution_settings.values():
            return s
        return ExecutionSettings()


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class CompletionResult:
    """Chat-completion response text and metadata."""
    text: str
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    finish_reason: str | None = None
    latency_ms: int = 0

    def __str__(self) -> str:
        return self.text
