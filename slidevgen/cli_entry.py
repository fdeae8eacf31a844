from __future__ import annotations

import argparse
import asyncio
import pathlib
import sys
from typing import Optional

from . import __version__
from .analyzer import ProjectAnalyzer
from .config import ConfigManager, ProjectConfig
from .errors import DeploymentFailed, SlidevGenError
from .generator import SlidesGenerator
from .selector import build_file_selector
from .utils import DEV_MODE_API_KEY, LLMClient, LLMConfig, log


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="slidev-gen",
        description="Generate project-specific presentations using Slidev and LLM technology.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--project-root",
        type=str,
        default=".",
        help="Path to the project to present. Default: current directory",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print progress messages during analysis and generation.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a new presentation")
    gen.add_argument("--slides-path", "-o", type=str, default=None, help="Output directory. Default: ./.slides")
    gen.add_argument("--model", "-m", type=str, default=None, help="OpenAI model to use. Default: gpt-4")
    gen.add_argument("--theme", "-t", type=str, default=None, help="Slidev theme to use. Default: default")
    gen.add_argument(
        "--api-key",
        "-k",
        type=str,
        default=None,
        help="OpenAI API key. If not provided, uses OPENAI_API_KEY.",
    )
    gen.add_argument(
        "--dev",
        "-d",
        action="store_true",
        help="Run in development mode (no LLM calls).",
    )
    gen.set_defaults(func=cmd_generate)

    preview = sub.add_parser("preview", help="Preview the generated presentation")
    preview.set_defaults(func=cmd_preview)

    build = sub.add_parser("build", help="Build the presentation as a static site")
    build.add_argument("--out", type=str, default="dist", help="Build output directory. Default: dist")
    build.set_defaults(func=cmd_build)

    export = sub.add_parser("export", help="Export the presentation to PDF")
    export.add_argument("--output", type=str, default="slides.pdf", help="PDF path. Default: slides.pdf")
    export.set_defaults(func=cmd_export)

    deploy = sub.add_parser("deploy", help="Deploy the presentation")
    deploy.add_argument(
        "--type",
        "-t",
        dest="deployment_type",
        choices=["github", "netlify", "vercel"],
        default=None,
        help="Deployment type. Default: github",
    )
    deploy.add_argument("--domain", dest="custom_domain", type=str, default=None, help="Custom domain")
    deploy.set_defaults(func=cmd_deploy)

    return parser.parse_args(argv)


def load_config(project_root: pathlib.Path, args: argparse.Namespace) -> ProjectConfig:
    overrides = {
        key: getattr(args, key, None)
        for key in ("slides_path", "model", "theme", "deployment_type", "custom_domain")
    }
    return ConfigManager(project_root).load_config().merged(overrides)


def make_generator(project_root: pathlib.Path, config: ProjectConfig, llm_client: Optional[LLMClient] = None) -> SlidesGenerator:
    return SlidesGenerator(
        project_root / config.slides_path,
        llm_client=llm_client,
        theme=config.theme,
        project_root=project_root,
    )


def cmd_generate(project_root: pathlib.Path, args: argparse.Namespace) -> int:
    if args.dev:
        log("Running in development mode (no LLM calls)")
    config = load_config(project_root, args)

    llm_client: Optional[LLMClient] = None
    api_key = DEV_MODE_API_KEY
    if not args.dev:
        llm_config = LLMConfig(model=config.model, api_key=args.api_key)
        api_key = llm_config.resolved_api_key()
        if args.verbose:
            log(f"Initializing LLM client with model={config.model}")
        llm_client = LLMClient(llm_config)

    selector = build_file_selector(api_key, config.model, llm_client=llm_client)
    analyzer = ProjectAnalyzer(project_root, selector=selector)
    if args.verbose:
        log(f"Analyzing project at: {project_root}")
    context = asyncio.run(analyzer.analyze())

    if args.verbose:
        log("Generating presentation content...")
    output = make_generator(project_root, config, llm_client).generate(context)

    log(f"Slides written to {output.paths['slides']}")
    log("Tip: run `slidev-gen preview` to view your presentation")
    return 0


def cmd_preview(project_root: pathlib.Path, args: argparse.Namespace) -> int:
    config = load_config(project_root, args)
    asyncio.run(make_generator(project_root, config).preview())
    return 0


def cmd_build(project_root: pathlib.Path, args: argparse.Namespace) -> int:
    config = load_config(project_root, args)
    asyncio.run(make_generator(project_root, config).build(args.out))
    log(f"Presentation built into {args.out}")
    return 0


def cmd_export(project_root: pathlib.Path, args: argparse.Namespace) -> int:
    config = load_config(project_root, args)
    asyncio.run(make_generator(project_root, config).export_pdf(args.output))
    log(f"Presentation exported to {args.output}")
    return 0


def cmd_deploy(project_root: pathlib.Path, args: argparse.Namespace) -> int:
    config = load_config(project_root, args)
    log(f"Deploying presentation using {config.deployment_type}...")
    raise DeploymentFailed(f"Deployment to {config.deployment_type} is not implemented yet")


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    project_root = pathlib.Path(args.project_root).expanduser().resolve()
    if not project_root.is_dir():
        print(f"[slidev-gen] ERROR: project root is not a directory: {project_root}", file=sys.stderr)
        return 1

    try:
        return args.func(project_root, args)
    except SlidevGenError as e:
        print(f"[slidev-gen] ERROR: {e}", file=sys.stderr)
        return 1
    except Exception as e:  # pragma: no cover - defensive
        print(f"[slidev-gen] ERROR: An unexpected error occurred: {e}", file=sys.stderr)
        return 1
