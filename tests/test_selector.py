"""Tests for important-file selectors."""

from __future__ import annotations

import pytest

from conftest import make_context
from slidevgen.analyzer import DocFile, Documentation
from slidevgen.selector import (
    MAX_DOCUMENTATION_CHARS,
    LLMFileSelector,
    StaticFileSelector,
    build_file_selector,
    build_selection_prompt,
)
from slidevgen.utils import DEV_MODE_API_KEY


class FakeLLM:
    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    def chat(self, *, system_prompt, user_prompt):
        self.calls.append((system_prompt, user_prompt))
        return self.reply


def test_static_selector_skips_hidden_files_and_caps_at_three():
    context = make_context()
    assert StaticFileSelector().select(context) == ["package.json", "tsconfig.json", "vite.config.ts"]


def test_static_selector_with_no_significant_files():
    assert StaticFileSelector().select(make_context(significant_files=[])) == []


def test_llm_selector_parses_array_wrapped_in_prose():
    llm = FakeLLM('Here you go:\n```json\n["./src/index.ts", "package.json", "src/index.ts"]\n```')

    paths = LLMFileSelector(llm).select(make_context())

    assert paths == ["src/index.ts", "package.json"]
    system_prompt, user_prompt = llm.calls[0]
    assert "at most 5 file paths" in system_prompt
    assert "# Test Project" in user_prompt
    assert "test-dep" in user_prompt


def test_llm_selector_keeps_dotfiles_intact():
    llm = FakeLLM('[".eslintrc.js"]')
    assert LLMFileSelector(llm).select(make_context()) == [".eslintrc.js"]


def test_llm_selector_caps_number_of_paths():
    llm = FakeLLM(str([f"src/f{i}.ts" for i in range(9)]).replace("'", '"'))
    assert len(LLMFileSelector(llm).select(make_context())) == 5


@pytest.mark.parametrize("reply", ["no json at all", '{"files": ["a.ts"]}', "[1, 2]"])
def test_llm_selector_rejects_malformed_replies(reply):
    with pytest.raises(ValueError):
        LLMFileSelector(FakeLLM(reply)).select(make_context())


def test_selection_prompt_bounds_documentation():
    context = make_context()
    huge = Documentation(
        readme=DocFile(path="README.md", content="x" * (MAX_DOCUMENTATION_CHARS * 3)),
        additional_docs=[DocFile(path="docs/big.md", content="y" * MAX_DOCUMENTATION_CHARS)],
    )
    context = type(context)(
        documentation=huge,
        dependencies=context.dependencies,
        git=context.git,
        codebase=context.codebase,
    )

    prompt = build_selection_prompt(context)

    assert len(prompt) < MAX_DOCUMENTATION_CHARS * 2


def test_build_file_selector_dev_mode_is_offline():
    assert isinstance(build_file_selector(DEV_MODE_API_KEY), StaticFileSelector)


def test_build_file_selector_without_key_falls_back(monkeypatch, capsys):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    selector = build_file_selector(None)

    assert isinstance(selector, StaticFileSelector)
    assert "WARNING" in capsys.readouterr().err


def test_build_file_selector_with_key_uses_llm(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert isinstance(build_file_selector("sk-test", model="gpt-4o-mini"), LLMFileSelector)


def test_build_file_selector_reuses_given_client(monkeypatch):
    def no_new_clients(config):
        raise AssertionError("a second OpenAI client was created")

    monkeypatch.setattr("slidevgen.selector.LLMClient", no_new_clients)
    llm = FakeLLM('["src/index.ts"]')

    selector = build_file_selector("sk-test", llm_client=llm)

    assert isinstance(selector, LLMFileSelector)
    assert selector.llm_client is llm
