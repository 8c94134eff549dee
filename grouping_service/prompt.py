"""
Tab Grouper - Prompt Construction

Renders a tab batch into the instruction sent to the completion model.
"""

from typing import Iterable

from .models import CompletionRequest, Tab, display_text


PROMPT_TEMPLATE = """You are an AI assistant that groups browser tabs into relevant categories. Analyze these browser tabs and group them by topic/purpose.

Return ONLY a valid JSON object with NO markdown, NO code blocks, NO explanations. Just the raw JSON.

The JSON should have category names as keys (strings) and arrays of tab IDs (integers) as values.

Example format:
{{"Shopping": [1, 5], "News": [2, 3], "Development": [4, 6]}}

Here are the tabs to group:
{tab_lines}"""


def format_tab(tab: Tab) -> str:
    return f"ID:{display_text(tab.id)} | {tab.title} ({tab.url})"


def build_prompt(tabs: Iterable[Tab]) -> str:
    """Embed one line per tab into the grouping instructions."""
    tab_lines = "\n".join(format_tab(tab) for tab in tabs)
    return PROMPT_TEMPLATE.format(tab_lines=tab_lines)


def build_request(tabs: Iterable[Tab], model: str) -> CompletionRequest:
    return CompletionRequest(model=model, prompt=build_prompt(tabs))
