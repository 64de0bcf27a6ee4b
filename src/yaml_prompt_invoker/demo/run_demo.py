"""Console demo: YAML prompt templates against an Azure OpenAI chat deployment.

Runs fixed scenarios that exercise argument overrides and template defaults,
then an interactive question loop on standard input.
"""
from __future__ import annotations
import argparse
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from yaml_prompt_invoker.azure.chat_client import AzureChatClient
from yaml_prompt_invoker.common.config import DEFAULT_SETTINGS_PATH, load_settings, required_settings
from yaml_prompt_invoker.common.errors import (
    ConfigurationInvalid,
    ConfigurationMissing,
    MalformedTemplate,
    PromptInvokerError,
    TemplateNotFound,
)
from yaml_prompt_invoker.common.logging_setup import setup_logging
from yaml_prompt_invoker.common.templates import TEMPLATES_DIR, load_template
from yaml_prompt_invoker.invoker import ChatCompletionClient, PromptInvoker

LOGGER = logging.getLogger("yaml_prompt_invoker.demo")

CHAT_TEMPLATE_FILE = "chat_prompt.yaml"
EXPLAIN_TEMPLATE_FILE = "explain_concept.yaml"

QUIT_WORD = "quit"

Write = Callable[[str], None]
Read = Callable[[str], str]


@dataclass(frozen=True)
class Scenario:
    title: str
    template_file: str
    arguments: Mapping[str, str] = field(default_factory=dict)


SCENARIOS: tuple[Scenario, ...] = (
    Scenario(
        "Programming Assistant",
        CHAT_TEMPLATE_FILE,
        {
            "assistant_name": "CodeMaster",
            "topic": "software development and programming",
            "user_question": "What are the benefits of using YAML for prompt templates?",
        },
    ),
    Scenario(
        "Science Assistant",
        CHAT_TEMPLATE_FILE,
        {
            "assistant_name": "Dr. Science",
            "topic": "physics and astronomy",
            "user_question": "How do black holes work and what happens to matter that falls into them?",
        },
    ),
    # only the required variable; name and topic come from the template defaults
    Scenario(
        "Using Default Values",
        CHAT_TEMPLATE_FILE,
        {"user_question": "What's the weather like today?"},
    ),
    Scenario(
        "Concept Explainer",
        EXPLAIN_TEMPLATE_FILE,
        {
            "concept": "vector embeddings",
            "audience": "software engineers who are new to machine learning",
        },
    ),
)

INTERACTIVE_ARGUMENTS = {
    "assistant_name": "InteractiveBot",
    "topic": "general knowledge and assistance",
}


def banner(title: str, underline: str, write: Write = print) -> None:
    write(title)
    write(underline * len(title))


def report_error(e: BaseException, write: Write = print) -> None:
    write(f"❌ Error: {e}")
    cause = e.__cause__
    if cause is not None:
        write(f"Inner Exception: {cause}")


def run_scenario(number: int, scenario: Scenario, invoker: PromptInvoker, write: Write = print) -> bool:
    """Run one fixed scenario; returns False if the invocation failed."""
    banner(f"📝 Scenario {number}: {scenario.title}", "-", write)
    try:
        result = invoker.invoke(dict(scenario.arguments))
    except PromptInvokerError as e:
        report_error(e, write)
        write("")
        return False
    write(f"🤖 Response: {result.text}\n")
    return True


def interactive_loop(invoker: PromptInvoker, read: Read = input, write: Write = print) -> int:
    """
    Ask questions until an empty line, ``quit`` (any case) or end of input.

    Returns:
        Number of invocations made.
    """
    write("Enter your question (or 'quit' to exit):")
    count = 0
    while True:
        try:
            line = read("❓ Your question: ")
        except EOFError:
            break
        if not line or line.lower() == QUIT_WORD:
            break
        count += 1
        try:
            result = invoker.invoke({**INTERACTIVE_ARGUMENTS, "user_question": line})
        except PromptInvokerError as e:
            report_error(e, write)
            write("")
            continue
        write(f"🤖 Response: {result.text}\n")
    return count


def load_invokers(
    templates_dir: str | Path,
    client: ChatCompletionClient,
    write: Write = print,
) -> dict[str, PromptInvoker]:
    """One invoker per demo template file, keyed by file name."""
    d = Path(templates_dir)
    invokers: dict[str, PromptInvoker] = {}
    for file_name in (CHAT_TEMPLATE_FILE, EXPLAIN_TEMPLATE_FILE):
        path = d / file_name
        write(f"📄 Loading YAML prompt template from: {path}")
        invokers[file_name] = PromptInvoker(load_template(path), client)
    return invokers


def run_demo(
    invokers: Mapping[str, PromptInvoker],
    interactive: bool = True,
    read: Read = input,
    write: Write = print,
) -> int:
    """Run every scenario in order, then the interactive one. Returns the failure count."""
    write("\n🎯 Running Demo Scenarios")
    write("========================\n")
    failures = 0
    for number, scenario in enumerate(SCENARIOS, start=1):
        if not run_scenario(number, scenario, invokers[scenario.template_file], write):
            failures += 1
    if interactive:
        banner(f"📝 Scenario {len(SCENARIOS) + 1}: Interactive Mode", "-", write)
        interactive_loop(invokers[CHAT_TEMPLATE_FILE], read, write)
    return failures


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="yaml-prompt-demo", description="YAML prompt template demo for Azure OpenAI")
    ap.add_argument("--settings", default=DEFAULT_SETTINGS_PATH, help="Settings file (YAML or JSON)")
    ap.add_argument("--templates-dir", default=TEMPLATES_DIR, help="Directory holding the demo templates")
    ap.add_argument("--log-level", default="WARNING", help="Logging level")
    ap.add_argument("--no-interactive", action="store_true", help="Skip the interactive scenario")
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    print("🚀 YAML Prompt Template Demo")
    print("============================\n")

    try:
        settings = load_settings(args.settings)
        client = AzureChatClient.from_settings(settings)
    except ConfigurationMissing:
        print(f"❌ Please configure your Azure OpenAI settings in {args.settings}")
        print("Required settings:")
        for name in required_settings():
            print(f"- {name}")
        return 0
    except ConfigurationInvalid as e:
        print(f"❌ {e}")
        return 0

    try:
        invokers = load_invokers(args.templates_dir, client)
    except TemplateNotFound as e:
        print(f"❌ {e}")
        return 0
    except MalformedTemplate as e:
        print(f"❌ Invalid prompt template: {e}")
        return 0

    failures = run_demo(invokers, interactive=not args.no_interactive)
    if failures:
        print(f"\n⚠️ Demo finished with {failures} failed scenario(s).")
    else:
        print("\n✅ Demo completed successfully!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
