from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .errors import APIKeyMissing


# Passing this as the API key disables every network call.
DEV_MODE_API_KEY = "dev-mode"


def ensure_path(path: Path) -> None:
    """
    Ensure directory exists (mkdir -p).
    """
    path.mkdir(parents=True, exist_ok=True)


def log(message: str) -> None:
    """
    Lightweight logging helper for CLI.
    """
    print(f"[slidev-gen] {message}")


def warn(message: str) -> None:
    print(f"[slidev-gen] WARNING: {message}", file=sys.stderr)


def is_dev_mode(api_key: Optional[str]) -> bool:
    return api_key == DEV_MODE_API_KEY


@dataclass
class LLMConfig:
    """
    Simple configuration holder for LLM settings.
    """

    model: str = "gpt-4"
    api_key: Optional[str] = None

    def resolved_api_key(self) -> str:
        key = self.api_key or os.getenv("OPENAI_API_KEY") or ""
        if not key:
            raise APIKeyMissing(
                "OpenAI API key not found. Please provide it via --api-key "
                "or set OPENAI_API_KEY environment variable."
            )
        return key


class LLMClient:
    """
    Tiny wrapper around OpenAI Chat Completions API.

    Anything with a matching `chat` method can stand in for it, which is
    how the tests avoid the network.
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        from openai import OpenAI

        api_key = self.config.resolved_api_key()
        self._client = OpenAI(api_key=api_key)

    def chat(self, *, system_prompt: str, user_prompt: str) -> str:
        """
        Call the chat completion API and return the response text.
        """
        response = self._client.chat.completions.create(
            model=self.config.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=0.3,
        )
        # new OpenAI SDK: choices[0].message.content is str | list
        content = response.choices[0].message.content
        if isinstance(content, list):
            return "".join(part.get("text", "") for part in content if isinstance(part, dict))
        return content or ""


def shorten(text: str, max_chars: int = 2000) -> str:
    """
    Shorten long text to limit tokens sent to the LLM, preserving start & end.
    """
    if len(text) <= max_chars:
        return text
    head = max_chars // 2
    tail = max_chars - head
    return text[:head] + "\n...\n" + text[-tail:]


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def parse_json_payload(raw: str, opener: str = "{", closer: str = "}") -> Any:
    """
    Parse JSON from an LLM reply.

    Models like to wrap JSON in prose or code fences, so when the whole reply
    does not parse, the outermost `opener ... closer` block is tried.
    Raises ValueError when nothing usable is found.
    """
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        pass

    start = raw.find(opener)
    end = raw.rfind(closer)
    if start == -1 or end == -1 or end <= start:
        raise ValueError("LLM reply does not contain JSON")
    try:
        return json.loads(raw[start : end + 1])
    except json.JSONDecodeError as e:
        raise ValueError(f"LLM reply contains malformed JSON: {e}") from e
