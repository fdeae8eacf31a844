"""
Important-files selection.

A selector looks at an analyzed project and names the files a presenter
should read. The default is deterministic and offline; the LLM-backed one
asks the model to rank files from the tree.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, List, Optional, Protocol

from .errors import APIKeyMissing
from .prompts import SYSTEM_SELECT_IMPORTANT_FILES, USER_SELECT_IMPORTANT_FILES_TEMPLATE
from .utils import LLMClient, LLMConfig, is_dev_mode, parse_json_payload, shorten, warn

if TYPE_CHECKING:
    from .analyzer import ProjectContext


# Upper bound on documentation text forwarded to the model.
MAX_DOCUMENTATION_CHARS = 12000
MAX_FILE_TREE_CHARS = 6000


class FileSelector(Protocol):
    def select(self, context: "ProjectContext") -> List[str]:
        ...


class StaticFileSelector:
    """
    Offline selector: the first few non-hidden significant files.
    """

    def __init__(self, limit: int = 3) -> None:
        self.limit = limit

    def select(self, context: "ProjectContext") -> List[str]:
        visible = [f for f in context.codebase.significant_files if not f.startswith(".")]
        return visible[: self.limit]


class LLMFileSelector:
    """
    Ask the language model which files matter most.
    """

    def __init__(self, llm_client: LLMClient, max_files: int = 5) -> None:
        self.llm_client = llm_client
        self.max_files = max_files

    def select(self, context: "ProjectContext") -> List[str]:
        raw = self.llm_client.chat(
            system_prompt=SYSTEM_SELECT_IMPORTANT_FILES.format(max_files=self.max_files),
            user_prompt=build_selection_prompt(context),
        )
        data = parse_json_payload(raw, "[", "]")
        if not isinstance(data, list) or not all(isinstance(p, str) for p in data):
            raise ValueError("expected a JSON array of file paths")

        paths: List[str] = []
        for p in data:
            p = p.strip()
            if p.startswith("./"):
                p = p[2:]
            if p and p not in paths:
                paths.append(p)
        return paths[: self.max_files]


def build_selection_prompt(context: "ProjectContext") -> str:
    docs = context.documentation
    doc_parts = [f"## {docs.readme.path}\n{docs.readme.content}"]
    doc_parts.extend(f"## {d.path}\n{d.content}" for d in docs.additional_docs)

    return USER_SELECT_IMPORTANT_FILES_TEMPLATE.format(
        file_structure=shorten(context.codebase.file_structure, MAX_FILE_TREE_CHARS),
        main_languages=", ".join(context.codebase.main_languages) or "unknown",
        significant_files=", ".join(context.codebase.significant_files) or "none",
        recent_commits="\n".join(f"- {c}" for c in context.git.recent_commits) or "- none",
        major_changes="\n".join(f"- {c}" for c in context.git.major_changes) or "- none",
        package_manager=context.dependencies.package_manager,
        packages=json.dumps(context.dependencies.packages, indent=2, sort_keys=True),
        documentation=shorten("\n\n".join(doc_parts), MAX_DOCUMENTATION_CHARS),
    )


def build_file_selector(
    api_key: Optional[str] = None,
    model: str = "gpt-4",
    llm_client: Optional[LLMClient] = None,
) -> FileSelector:
    """
    Pick a selector for the given credential.

    An existing `llm_client` is reused as-is. Otherwise the dev-mode
    sentinel, or no usable key, means the offline selector.
    """
    if llm_client is not None:
        return LLMFileSelector(llm_client)
    if is_dev_mode(api_key):
        return StaticFileSelector()
    try:
        client = LLMClient(LLMConfig(model=model, api_key=api_key))
    except APIKeyMissing as e:
        warn(f"{e} Falling back to offline important-file selection.")
        return StaticFileSelector()
    return LLMFileSelector(client)
