"""
Slidev slide templates.

Each template renders one slide body from the generated content; an empty
body means the slide is skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from textwrap import dedent
from typing import Any, Callable, Dict, List, Optional, Union


TemplateData = Dict[str, Any]


@dataclass(frozen=True)
class SlideTemplate:
    layout: str
    content: Union[str, Callable[[TemplateData], str]]


def _mermaid(diagram: Optional[str]) -> str:
    if not diagram:
        return ""
    return f"```mermaid\n{diagram.strip()}\n```"


def _bullets(items: List[str]) -> str:
    return "\n".join(f"- {item}" for item in items if str(item).strip())


def _cover(data: TemplateData) -> str:
    lines = [f"# {data.get('title', '')}"]
    if data.get("headline"):
        lines.extend(["", str(data["headline"])])
    return "\n".join(lines)


def _overview(data: TemplateData) -> str:
    if not data.get("overview"):
        return ""
    return f"# Overview\n\n{data['overview']}"


def _architecture(data: TemplateData) -> str:
    arch = data.get("architecture")
    if not arch:
        return ""
    return "\n".join(
        [
            "# Architecture",
            "",
            arch["description"],
            "",
            "::right::",
            "",
            _mermaid(arch.get("diagram")),
        ]
    ).rstrip()


def _features(data: TemplateData) -> str:
    if not data.get("features"):
        return ""
    return f"# Key Features\n\n{_bullets(data['features'])}"


def _technical_detail(data: TemplateData) -> str:
    tech = data.get("technical")
    if not tech:
        return ""
    body = f"# Technical Detail {tech['index'] + 1}\n\n{tech['detail']}"
    diagram = _mermaid(tech.get("diagram"))
    return f"{body}\n\n{diagram}" if diagram else body


def _roadmap(data: TemplateData) -> str:
    if not data.get("roadmap"):
        return ""
    return f"# Roadmap\n\n{_bullets(data['roadmap'])}"


TEMPLATES: Dict[str, SlideTemplate] = {
    "cover": SlideTemplate(layout="cover", content=_cover),
    "overview": SlideTemplate(layout="default", content=_overview),
    "architecture": SlideTemplate(layout="two-cols", content=_architecture),
    "features": SlideTemplate(layout="bullets", content=_features),
    "technical_header": SlideTemplate(layout="section", content="# Technical Deep Dive"),
    "technical_detail": SlideTemplate(layout="default", content=_technical_detail),
    "roadmap": SlideTemplate(layout="timeline", content=_roadmap),
}


def create_slide(template: SlideTemplate, data: TemplateData) -> str:
    content = template.content(data) if callable(template.content) else template.content
    content = content.strip()
    if not content:
        return ""
    return dedent(
        """\
        ---
        layout: {layout}
        ---
        """
    ).format(layout=template.layout) + content


DEFAULT_SLIDEV_CONFIG: Dict[str, Any] = {
    "theme": "default",
    "highlighter": "shiki",
    "lineNumbers": True,
    "drawings": {
        "persist": True,
    },
    "mdc": True,
}
