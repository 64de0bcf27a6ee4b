"""Bind arguments to a prompt template and obtain a chat completion."""
from __future__ import annotations
import logging
from collections.abc import Mapping
from typing import Any, Protocol

from yaml_prompt_invoker.common.schema import ChatMessage, CompletionResult, ExecutionSettings, PromptTemplate
from yaml_prompt_invoker.common.templates import render_prompt, to_messages

LOGGER = logging.getLogger("yaml_prompt_invoker.invoker")


class ChatCompletionClient(Protocol):
    """Anything that turns chat messages into a completion."""

    def complete(
        self,
        messages: list[ChatMessage],
        settings: ExecutionSettings | None = None,
    ) -> CompletionResult:
        ...


class PromptInvoker:
    """
    A template bound to a chat client.

    Each call renders the template with a fresh argument mapping, so invokers
    hold no per-call state and can be reused across scenarios.
    """

    def __init__(self, template: PromptTemplate, client: ChatCompletionClient, strict: bool = True) -> None:
        self.template = template
        self.client = client
        self.strict = strict

    @property
    def name(self) -> str:
        return self.template.name

    def render(self, arguments: Mapping[str, Any] | None = None) -> str:
        return render_prompt(self.template, arguments, strict=self.strict)

    def invoke(self, arguments: Mapping[str, Any] | None = None) -> CompletionResult:
        """
        Render the prompt and send it to the chat endpoint.

        Binding errors (MissingVariable, UndeclaredPlaceholder, MalformedTemplate)
        are raised before any request is made.
        """
        prompt = self.render(arguments)
        LOGGER.debug("Invoking '%s' with %d prompt characters", self.name, len(prompt))
        return self.client.complete(to_messages(prompt), self.template.settings)


def invoke(
    template: PromptTemplate,
    arguments: Mapping[str, Any] | None,
    client: ChatCompletionClient,
    strict: bool = True,
) -> CompletionResult:
    """One-shot form of ``PromptInvoker(template, client).invoke(arguments)``."""
    return PromptInvoker(template, client, strict=strict).invoke(arguments)
