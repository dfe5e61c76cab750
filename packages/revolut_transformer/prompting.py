"""Prompt construction for the external classifier.

One request is built per batch of names: a fixed system instruction and a
user message carrying the full taxonomy, the reply contract (a single JSON
object keyed by the exact original names) and the numbered names.
"""

from __future__ import annotations

from collections.abc import Sequence


def build_system_instructions() -> str:
    return (
        "You are a meticulous financial transaction classifier. "
        "Only output strict JSON with no extra commentary."
    )


def build_user_content(names: Sequence[str], categories: Sequence[str]) -> str:
    """Return the user message for one batch of ``names``.

    Names are listed one per line, numbered from 1, exactly as they appear in
    the export so the reply keys can be matched verbatim.
    """

    numbered = "\n".join(f"{i}. {name}" for i, name in enumerate(names, start=1))
    return (
        "Classify each transaction/merchant name into one of these categories: "
        f"{', '.join(categories)}.\n"
        "Return a single valid JSON object with keys = original names EXACTLY "
        "and values = one category string.\n"
        f"Names:\n{numbered}"
    )


def build_messages(names: Sequence[str], categories: Sequence[str]) -> list[dict[str, str]]:
    """Return the chat ``messages`` list for one batch."""

    return [
        {"role": "system", "content": build_system_instructions()},
        {"role": "user", "content": build_user_content(names, categories)},
    ]


__all__ = ["build_messages", "build_system_instructions", "build_user_content"]
