"""Shared fixtures: a sample project on disk and a fake command runner."""

from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path

import pytest

from slidevgen.analyzer import (
    Codebase,
    Dependencies,
    DocFile,
    Documentation,
    GitHistory,
    ProjectContext,
)
from slidevgen.commands import CommandError, CommandNotFound


GITIGNORE = """# Build output
dist/
*.log

# Custom ignored directory
custom_ignore/

# Cache files
.cache/
*.cache

# Wildcards should work
*.tmp
"""

RECENT_LOG = ("git", "log", "--pretty=format:%h %s", "-n", "10")
SHORTSTAT_LOG = ("git", "log", "--pretty=format:%h %s", "--shortstat", "-n", "10")
AUTHORS_LOG = ("git", "log", "--format=%aN")
REV_PARSE = ("git", "rev-parse", "--git-dir")

needs_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


class FakeRunner:
    """
    CommandRunner double answering from a table of exact argument tuples.

    Unknown git commands fail like git outside a repository; executables
    listed in `missing` behave as if not installed.
    """

    def __init__(self, responses=None, missing=("tree",)):
        self.responses = dict(responses or {})
        self.missing = set(missing)
        self.calls = []

    async def run(self, args, *, cwd=None, capture_output=True):
        args = tuple(args)
        self.calls.append(args)
        if args[0] in self.missing:
            raise CommandNotFound(args)
        if args in self.responses:
            result = self.responses[args]
            if isinstance(result, BaseException):
                raise result
            return result
        raise CommandError(args, 128, "fatal: not a git repository (or any of the parent directories): .git")


def git_responses(recent="abc1234 Initial commit", shortstat=None, authors="Test User\n"):
    if shortstat is None:
        shortstat = "abc1234 Initial commit\n 3 files changed, 20 insertions(+)\n"
    return {
        REV_PARSE: ".git\n",
        RECENT_LOG: recent,
        SHORTSTAT_LOG: shortstat,
        AUTHORS_LOG: authors,
    }


@pytest.fixture
def fake_runner():
    return FakeRunner(git_responses())


@pytest.fixture
def project(tmp_path):
    """Create the sample project layout used across the analyzer tests."""
    root = tmp_path / "project"
    (root / "docs").mkdir(parents=True)
    (root / "src").mkdir()

    (root / "README.md").write_text("# Test Project\nThis is a test project.\n")
    (root / "docs" / "guide.md").write_text("# Guide\nThis is a guide.\n")
    (root / "package.json").write_text(
        json.dumps(
            {
                "dependencies": {"test-dep": "1.0.0"},
                "devDependencies": {"test-dev-dep": "1.0.0"},
            }
        )
    )
    (root / "bun.lock").write_text("")
    (root / "src" / "index.ts").write_text('console.log("Hello")\n')
    (root / "src" / "utils.js").write_text("export const add = (a, b) => a + b\n")
    (root / ".gitignore").write_text(GITIGNORE)
    return root


def init_git_repo(root: Path) -> None:
    def git(*args):
        subprocess.run(
            [
                "git",
                "-c",
                "user.name=Test User",
                "-c",
                "user.email=test@example.com",
                "-c",
                "commit.gpgsign=false",
                *args,
            ],
            cwd=root,
            check=True,
            capture_output=True,
        )

    git("init")
    git("add", "-A")
    git("commit", "-m", "Initial commit")


def make_context(**codebase_overrides) -> ProjectContext:
    codebase = dict(
        main_languages=["ts", "js"],
        file_structure=".\n├── src\n│   └── index.ts\n└── package.json\n",
        significant_files=["package.json", ".eslintrc.js", "tsconfig.json", "vite.config.ts", "README.md"],
    )
    codebase.update(codebase_overrides)
    return ProjectContext(
        documentation=Documentation(
            readme=DocFile(
                path="README.md",
                content="# Test Project\n\nA test project for slides.\n\n- Fast builds\n- Typed API\n",
            ),
            additional_docs=[DocFile(path="docs/additional.md", content="# Additional Doc\nMore documentation")],
        ),
        dependencies=Dependencies(package_manager="bun", packages={"test-dep": "1.0.0"}),
        git=GitHistory(
            recent_commits=["abc1234 feat: initial commit"],
            major_changes=["abc1234 feat: initial commit"],
            contributors=["Test User"],
        ),
        codebase=Codebase(**codebase),
    )
