from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from .analyzer import ProjectContext
from .commands import CommandError, CommandRunner, SubprocessRunner
from .errors import LLMGenerationFailed, SlidevGenError
from .prompts import SYSTEM_SLIDE_CONTENT, USER_SLIDE_CONTENT_TEMPLATE
from .templates import DEFAULT_SLIDEV_CONFIG, TEMPLATES, create_slide
from .utils import LLMClient, ensure_path, parse_json_payload, shorten


SLIDES_FILE = "slides.md"
CONFIG_FILE = "slidev.config.ts"

# Upper bound on the serialized project context sent to the model.
MAX_CONTEXT_CHARS = 24000


class Sections(BaseModel):
    overview: str
    architecture: str
    features: List[str] = Field(default_factory=list)
    technical: List[str] = Field(default_factory=list)
    roadmap: List[str] = Field(default_factory=list)


class Diagrams(BaseModel):
    architecture: Optional[str] = None
    flowcharts: Optional[List[str]] = None


class SlideContent(BaseModel):
    title: str
    headline: str = ""
    sections: Sections
    diagrams: Diagrams = Field(default_factory=Diagrams)


@dataclass
class SlideOutput:
    markdown: str
    config: Dict[str, Any]
    paths: Dict[str, str]
    assets: List[str] = field(default_factory=list)


class SlidesGenerator:
    """
    Turn a ProjectContext into a Slidev deck (slides.md + slidev.config.ts)
    and drive the Slidev CLI for preview / build / export.

    With an LLM client the slide content is written by the model; without
    one it is derived from the context with simple heuristics.
    """

    def __init__(
        self,
        output_dir: Path,
        *,
        llm_client: Optional[LLMClient] = None,
        runner: Optional[CommandRunner] = None,
        theme: str = "default",
        project_root: Optional[Path] = None,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.llm_client = llm_client
        self.runner: CommandRunner = runner or SubprocessRunner()
        self.theme = theme
        self.project_root = Path(project_root) if project_root else Path.cwd()

    @property
    def slides_path(self) -> Path:
        return self.output_dir / SLIDES_FILE

    @property
    def config_path(self) -> Path:
        return self.output_dir / CONFIG_FILE

    def generate(self, context: ProjectContext) -> SlideOutput:
        content = self.generate_content(context)
        output = self.render(content)
        self.write_output(output)
        return output

    def generate_content(self, context: ProjectContext) -> SlideContent:
        if self.llm_client:
            return self._content_with_llm(context)
        return heuristic_content(context)

    def _content_with_llm(self, context: ProjectContext) -> SlideContent:
        user_prompt = USER_SLIDE_CONTENT_TEMPLATE.format(
            context=shorten(json.dumps(context.to_dict(), ensure_ascii=False), MAX_CONTEXT_CHARS),
        )
        try:
            raw = self.llm_client.chat(system_prompt=SYSTEM_SLIDE_CONTENT, user_prompt=user_prompt)
        except Exception as e:
            raise LLMGenerationFailed(f"Failed to generate slide content: {e}", e) from e

        try:
            return SlideContent.model_validate(parse_json_payload(raw))
        except (ValueError, ValidationError) as e:
            raise LLMGenerationFailed(f"LLM returned unusable slide content: {e}", e) from e

    def render(self, content: SlideContent) -> SlideOutput:
        data: Dict[str, Any] = {
            "title": content.title,
            "headline": content.headline,
            "overview": content.sections.overview,
            "architecture": {
                "description": content.sections.architecture,
                "diagram": content.diagrams.architecture,
            }
            if content.sections.architecture
            else None,
            "features": content.sections.features,
            "roadmap": content.sections.roadmap,
        }

        slides: List[str] = [
            create_slide(TEMPLATES["cover"], data),
            create_slide(TEMPLATES["overview"], data),
            create_slide(TEMPLATES["architecture"], data),
            create_slide(TEMPLATES["features"], data),
        ]
        if content.sections.technical:
            slides.append(create_slide(TEMPLATES["technical_header"], data))
            flowcharts = content.diagrams.flowcharts or []
            for idx, detail in enumerate(content.sections.technical):
                technical = {
                    "index": idx,
                    "detail": detail,
                    "diagram": flowcharts[idx] if idx < len(flowcharts) else None,
                }
                slides.append(create_slide(TEMPLATES["technical_detail"], {"technical": technical}))
        slides.append(create_slide(TEMPLATES["roadmap"], data))

        config = dict(DEFAULT_SLIDEV_CONFIG)
        config["theme"] = self.theme
        return SlideOutput(
            markdown="\n\n".join(s for s in slides if s) + "\n",
            config=config,
            paths={"slides": str(self.slides_path), "config": str(self.config_path)},
        )

    def write_output(self, output: SlideOutput) -> None:
        ensure_path(self.output_dir)
        self.slides_path.write_text(output.markdown, encoding="utf-8")
        self.config_path.write_text(f"export default {json.dumps(output.config, indent=2)}\n", encoding="utf-8")

    async def preview(self) -> None:
        """
        Serve the slides with the Slidev dev server.
        """
        await self._slidev(str(self.slides_path), capture_output=False)

    async def build(self, out_dir: str = "dist") -> None:
        await self._slidev("build", str(self.slides_path), "--out", out_dir)

    async def export_pdf(self, output_path: str) -> None:
        await self._slidev("export", str(self.slides_path), "--output", output_path)

    def slidev_command(self) -> List[str]:
        local = self.project_root / "node_modules" / ".bin" / "slidev"
        if local.exists():
            return [str(local)]
        return ["npx", "slidev"]

    async def _slidev(self, *args: str, capture_output: bool = True) -> None:
        if not self.slides_path.exists():
            raise SlidevGenError(f"No slides found at {self.slides_path}. Run `slidev-gen generate` first.")
        try:
            await self.runner.run(
                [*self.slidev_command(), *args],
                cwd=self.project_root,
                capture_output=capture_output,
            )
        except CommandError as e:
            raise SlidevGenError(f"Slidev command failed: {e}", e) from e


_BULLET_RE = re.compile(r"^\s*[-*+]\s+(.*\S)\s*$")


def heuristic_content(context: ProjectContext) -> SlideContent:
    """
    Build slide content from the context alone, without any LLM.

    - README first heading as title, first paragraph as headline/overview
    - README bullet points as features
    - languages, dependencies and major commits as technical details
    - recent commits as the roadmap
    """
    readme = context.documentation.readme.content
    lines = readme.splitlines()

    title = ""
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("#"):
            title = stripped.lstrip("#").strip()
            break
    if not title:
        title = "Project Overview"

    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", readme) if p.strip()]
    prose = [p for p in paragraphs if not p.startswith(("#", "-", "*", "```", "|"))]
    overview = shorten(prose[0], 600) if prose else f"An overview of {title}."
    headline = overview.splitlines()[0] if prose else ""

    features: List[str] = []
    for line in lines:
        m = _BULLET_RE.match(line)
        if m:
            features.append(m.group(1))
        if len(features) >= 5:
            break

    codebase = context.codebase
    deps = context.dependencies
    arch_parts: List[str] = []
    if codebase.main_languages:
        arch_parts.append(f"Written mainly in {', '.join(codebase.main_languages)}.")
    if codebase.significant_files:
        arch_parts.append(f"Key configuration: {', '.join(codebase.significant_files)}.")
    if codebase.important_files:
        arch_parts.append(f"Core files: {', '.join(f.path for f in codebase.important_files)}.")

    technical: List[str] = []
    if deps.packages:
        names = sorted(deps.packages)[:8]
        technical.append(f"Managed with {deps.package_manager}; depends on {', '.join(names)}.")
    technical.extend(f"Major change: {c}" for c in context.git.major_changes[:3])
    if context.git.contributors:
        technical.append(f"Contributors: {', '.join(context.git.contributors[:5])}.")

    return SlideContent(
        title=title,
        headline=headline,
        sections=Sections(
            overview=overview,
            architecture=" ".join(arch_parts),
            features=features,
            technical=technical,
            roadmap=[f"Recent: {c}" for c in context.git.recent_commits[:3]],
        ),
    )
