from __future__ import annotations

from pathlib import Path

import pytest

from yaml_prompt_invoker.common.errors import (
    MalformedTemplate,
    MissingVariable,
    TemplateNotFound,
    UndeclaredPlaceholder,
)
from yaml_prompt_invoker.common.schema import PromptTemplate
from yaml_prompt_invoker.common.templates import (
    load_template,
    load_templates,
    parse_template,
    placeholders,
    render_prompt,
    to_messages,
)

TEMPLATES = Path(__file__).resolve().parent.parent / "configs" / "templates"

ASSISTANT = {
    "name": "Assistant",
    "template": "You are {{assistant_name}}, an expert in {{topic}}. User asks: {{user_question}}",
    "input_variables": [
        {"name": "assistant_name", "default": "Assistant", "is_required": False},
        {"name": "topic", "default": "general knowledge", "is_required": False},
        {"name": "user_question", "is_required": True},
    ],
}


def test_render_with_defaults_end_to_end() -> None:
    tpl = parse_template(ASSISTANT)
    out = render_prompt(tpl, {"user_question": "What's the weather?"})
    assert out == "You are Assistant, an expert in general knowledge. User asks: What's the weather?"


def test_arguments_override_defaults() -> None:
    tpl = parse_template(
        {
            "name": "Topic",
            "template": "Tell me about {{topic}}.",
            "input_variables": [{"name": "topic", "default": "general"}],
        }
    )
    out = render_prompt(tpl, {"topic": "physics"})
    assert "physics" in out
    assert "general" not in out


def test_render_is_idempotent() -> None:
    tpl = parse_template(ASSISTANT)
    args = {"user_question": "Why is the sky blue?", "topic": "optics"}
    assert render_prompt(tpl, args) == render_prompt(tpl, args)


def test_no_required_variables_renders_with_empty_arguments() -> None:
    tpl = parse_template(
        {
            "name": "Greeting",
            "template": "Hello {{who}}!",
            "input_variables": [{"name": "who", "default": "world", "is_required": False}],
        }
    )
    assert render_prompt(tpl, {}) == "Hello world!"
    assert render_prompt(tpl) == "Hello world!"


def test_missing_required_variable_names_it() -> None:
    tpl = parse_template(ASSISTANT)
    with pytest.raises(MissingVariable) as exc:
        render_prompt(tpl, {"topic": "history"})
    assert exc.value.name == "user_question"
    assert "user_question" in str(exc.value)


def test_optional_variable_without_default_is_still_missing_when_referenced() -> None:
    tpl = parse_template(
        {
            "name": "Optional",
            "template": "Hi {{nickname}}",
            "input_variables": [{"name": "nickname", "is_required": False}],
        }
    )
    with pytest.raises(MissingVariable):
        render_prompt(tpl, {})


def test_undeclared_placeholder_strict_and_lenient() -> None:
    tpl = parse_template(
        {
            "name": "Loose",
            "template": "{{greeting}}, {{name}}",
            "input_variables": [{"name": "name", "default": "Ada"}],
        }
    )
    with pytest.raises(UndeclaredPlaceholder) as exc:
        render_prompt(tpl, {})
    assert exc.value.name == "greeting"
    assert render_prompt(tpl, {}, strict=False) == "{{greeting}}, Ada"
    assert render_prompt(tpl, {"greeting": "Hi"}, strict=False) == "Hi, Ada"


def test_dollar_and_spaced_placeholders() -> None:
    tpl = parse_template(
        {
            "name": "Styles",
            "template": "{{$a}} {{ a }} {{b}}",
            "input_variables": [{"name": "a"}, {"name": "b", "default": 2}],
        }
    )
    assert placeholders(tpl) == ["a", "b"]
    assert render_prompt(tpl, {"a": "x"}) == "x x 2"


@pytest.mark.parametrize(
    "data",
    [
        {"name": "Empty", "template": "   \n"},
        {"name": "Static", "template": "Tell me a joke."},
        {"name": "Broken", "template": "Hello {{name"},
        {"name": "Call", "template": "{{ summarize input }}"},
        {"name": "Dup", "template": "{{a}}", "input_variables": [{"name": "a"}, {"name": "a"}]},
        {"template": "no name"},
        ["not", "a", "mapping"],
    ],
)
def test_malformed_templates(data: object) -> None:
    with pytest.raises(MalformedTemplate):
        parse_template(data)


def test_load_template_missing_file(tmp_path: Path) -> None:
    missing = tmp_path / "nope.yaml"
    with pytest.raises(TemplateNotFound) as exc:
        load_template(missing)
    assert "nope.yaml" in str(exc.value)


def test_load_template_invalid_yaml(tmp_path: Path) -> None:
    p = tmp_path / "bad.yaml"
    p.write_text("name: [unclosed\n", encoding="utf-8")
    with pytest.raises(MalformedTemplate):
        load_template(p)


def test_repo_templates_load() -> None:
    templates = load_templates(TEMPLATES)
    assert set(templates) == {"ChatPrompt", "ExplainConcept"}
    chat = templates["ChatPrompt"]
    assert chat.defaults == {"assistant_name": "Assistant", "topic": "general knowledge"}
    assert chat.settings.max_tokens == 500
    rendered = render_prompt(chat, {"user_question": "What's the weather like today?"})
    assert "You are Assistant, an expert in general knowledge." in rendered


def test_to_messages_splits_tags() -> None:
    msgs = to_messages("<|system|>\nBe brief.\n<|user|>\nHi there\n")
    assert [(m.role, m.content) for m in msgs] == [("system", "Be brief."), ("user", "Hi there")]


def test_to_messages_without_tags_is_single_user_message() -> None:
    msgs = to_messages("Just a question?")
    assert [(m.role, m.content) for m in msgs] == [("user", "Just a question?")]


def test_template_without_placeholders_fails_at_render_too() -> None:
    tpl = PromptTemplate(name="Static", template="Tell me a joke.")
    with pytest.raises(MalformedTemplate) as exc:
        render_prompt(tpl, {})
    assert "Static" in str(exc.value)
