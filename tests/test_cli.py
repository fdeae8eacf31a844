"""Tests for the slidev-gen command line."""

from __future__ import annotations

import json

from conftest import init_git_repo, needs_git
from slidevgen.cli_entry import main


def test_rejects_missing_project_root(tmp_path, capsys):
    code = main(["--project-root", str(tmp_path / "nope"), "preview"])

    assert code == 1
    assert "not a directory" in capsys.readouterr().err


def test_generate_requires_api_key(project, monkeypatch, capsys):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    code = main(["--project-root", str(project), "generate"])

    assert code == 1
    assert "OpenAI API key not found" in capsys.readouterr().err


def test_deploy_is_not_implemented(project, capsys):
    code = main(["--project-root", str(project), "deploy", "--type", "vercel"])

    captured = capsys.readouterr()
    assert code == 1
    assert "Deploying presentation using vercel" in captured.out
    assert "not implemented" in captured.err


def test_invalid_config_file_is_reported(project, capsys):
    (project / ".slidev-gen.json").write_text("{oops")

    code = main(["--project-root", str(project), "deploy"])

    assert code == 1
    assert "invalid JSON" in capsys.readouterr().err


def test_config_file_with_unknown_keys_still_loads(project, capsys):
    (project / ".slidev-gen.json").write_text(json.dumps({"deploymentType": "netlify", "futureKey": 1}))

    code = main(["--project-root", str(project), "deploy"])

    captured = capsys.readouterr()
    assert code == 1
    assert "Deploying presentation using netlify" in captured.out
    assert "Invalid configuration" not in captured.err


def test_preview_without_slides(project, capsys):
    code = main(["--project-root", str(project), "preview"])

    assert code == 1
    assert "No slides found" in capsys.readouterr().err


def test_generate_fails_outside_git_repository(project, capsys):
    code = main(["--project-root", str(project), "generate", "--dev"])

    assert code == 1
    assert "Failed to analyze" in capsys.readouterr().err


@needs_git
def test_generate_dev_mode_writes_deck(project, capsys):
    init_git_repo(project)
    (project / ".slidev-gen.json").write_text(json.dumps({"theme": "seriph"}))

    code = main(["--project-root", str(project), "generate", "--dev", "-o", "deck"])

    assert code == 0
    slides = (project / "deck" / "slides.md").read_text()
    assert "# Test Project" in slides
    config_text = (project / "deck" / "slidev.config.ts").read_text()
    assert '"theme": "seriph"' in config_text
    out = capsys.readouterr().out
    assert "development mode" in out
    assert "Slides written to" in out


def test_generate_builds_a_single_llm_client(project, monkeypatch, capsys):
    created = []

    class CountingClient:
        def __init__(self, config):
            created.append(config)

        def chat(self, *, system_prompt, user_prompt):
            return "[]"

    def no_new_clients(config):
        raise AssertionError("a second OpenAI client was created")

    monkeypatch.setattr("slidevgen.cli_entry.LLMClient", CountingClient)
    monkeypatch.setattr("slidevgen.selector.LLMClient", no_new_clients)

    # No git repository, so generation stops after the analyzer is set up.
    code = main(["--project-root", str(project), "generate", "--api-key", "sk-test"])

    assert code == 1
    assert "Failed to analyze" in capsys.readouterr().err
    assert len(created) == 1
