"""Prompt templating helpers."""
from __future__ import annotations
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml
from pydantic import ValidationError

from yaml_prompt_invoker.common.errors import (
    MalformedTemplate,
    MissingVariable,
    TemplateNotFound,
    UndeclaredPlaceholder,
)
from yaml_prompt_invoker.common.schema import ChatMessage, PromptTemplate

LOGGER = logging.getLogger("yaml_prompt_invoker.templates")

TEMPLATES_DIR = "configs/templates"
DEFAULT_TEMPLATE_PATH = f"{TEMPLATES_DIR}/chat_prompt.yaml"

# {{name}}, {{$name}} and {{ name }} all refer to the same variable
PLACEHOLDER_RE = re.compile(r"\{\{\s*\$?([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")

SYSTEM_TAG, USER_TAG = "<|system|>", "<|user|>"


def parse_template(data: Any, source: str = "<memory>") -> PromptTemplate:
    """
    Build a template from an already-parsed YAML document.

    Args:
        data: Mapping produced by the YAML loader.
        source: Where the data came from, used in error messages.

    Raises:
        MalformedTemplate: If the document is not a valid template definition.
    """
    if not isinstance(data, Mapping):
        raise MalformedTemplate(f"{source}: expected a mapping at the top level, got {type(data).__name__}")
    try:
        template = PromptTemplate.model_validate(dict(data))
    except ValidationError as e:
        raise MalformedTemplate(f"{source}: {e}") from e
    if not placeholders(template):
        raise MalformedTemplate(f"{source}: template '{template.name}' references no {{{{variable}}}} placeholders")
    return template


def load_template(path: str | Path = DEFAULT_TEMPLATE_PATH) -> PromptTemplate:
    """
    Load a YAML prompt template file.

    Args:
        path: Path to the template file.

    Raises:
        TemplateNotFound: If the file does not exist.
        MalformedTemplate: If the file is not valid YAML or not a valid template.
    """
    p = Path(path)
    if not p.is_file():
        raise TemplateNotFound(str(p.resolve()))
    LOGGER.debug("Loading prompt template from %s", p)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise MalformedTemplate(f"{p}: invalid YAML: {e}") from e
    template = parse_template(data, source=str(p))
    LOGGER.info("Loaded template '%s' (%d input variables)", template.name, len(template.input_variables))
    return template


def load_templates(directory: str | Path = TEMPLATES_DIR) -> dict[str, PromptTemplate]:
    """Load every ``*.yaml``/``*.yml`` file in a directory, keyed by template name."""
    d = Path(directory)
    if not d.is_dir():
        raise TemplateNotFound(str(d.resolve()))
    out: dict[str, PromptTemplate] = {}
    for p in sorted([*d.glob("*.yaml"), *d.glob("*.yml")]):
        template = load_template(p)
        if template.name in out:
            raise MalformedTemplate(f"{p}: template name '{template.name}' is already used by another file")
        out[template.name] = template
    return out


def placeholders(template: PromptTemplate) -> list[str]:
    """
    List placeholder names in body order, without duplicates.

    Raises:
        MalformedTemplate: If the body has ``{{``/``}}`` delimiters that do not
            form a placeholder.
    """
    body = template.template
    leftover = PLACEHOLDER_RE.sub("", body)
    if "{{" in leftover or "}}" in leftover:
        raise MalformedTemplate(f"Template '{template.name}' has unbalanced or invalid '{{{{ }}}}' delimiters")
    names: list[str] = []
    for m in PLACEHOLDER_RE.finditer(body):
        if m.group(1) not in names:
            names.append(m.group(1))
    return names


def resolve_arguments(
    template: PromptTemplate,
    arguments: Mapping[str, Any] | None = None,
    strict: bool = True,
) -> Mapping[str, str]:
    """
    Merge caller arguments over the template's declared defaults.

    Args:
        template: Loaded template.
        arguments: Caller-supplied values; these take precedence over defaults.
        strict: Fail on placeholders the template does not declare.

    Returns:
        Read-only mapping of every value the body needs.

    Raises:
        MissingVariable: A required or referenced variable has no value.
        UndeclaredPlaceholder: The body references an undeclared name (strict only).
    """
    supplied = {str(k): str(v) for k, v in (arguments or {}).items()}
    merged = {**template.defaults, **supplied}
    declared = template.variables

    for var in template.input_variables:
        if var.is_required and var.name not in merged:
            raise MissingVariable(var.name, template.name)

    names = placeholders(template)
    if not names:
        raise MalformedTemplate(f"Template '{template.name}' references no {{{{variable}}}} placeholders")
    for name in names:
        if name not in declared:
            if strict:
                raise UndeclaredPlaceholder(name, template.name)
            continue
        if name not in merged:
            raise MissingVariable(name, template.name)

    return MappingProxyType(merged)


def render_prompt(
    template: PromptTemplate,
    arguments: Mapping[str, Any] | None = None,
    strict: bool = True,
) -> str:
    """
    Render arguments into the template body.

    Non-strict rendering leaves unresolved undeclared placeholders verbatim.
    """
    values = resolve_arguments(template, arguments, strict=strict)

    def _sub(m: re.Match[str]) -> str:
        return values.get(m.group(1), m.group(0))

    return PLACEHOLDER_RE.sub(_sub, template.template)


def to_messages(prompt: str) -> list[ChatMessage]:
    """Split a rendered prompt on <|system|>/<|user|> tags; untagged text is one user message."""
    start = prompt.find(SYSTEM_TAG)
    end = prompt.find(USER_TAG, start + len(SYSTEM_TAG)) if start != -1 else -1
    if start == -1 or end == -1:
        return [ChatMessage(role="user", content=prompt.strip())]
    system = prompt[start + len(SYSTEM_TAG):end].strip()
    user = prompt[end + len(USER_TAG):].strip()
    messages = [ChatMessage(role="system", content=system)] if system else []
    messages.append(ChatMessage(role="user", content=user))
    return messages
