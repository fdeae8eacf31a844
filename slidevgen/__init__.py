"""
slidev-gen - Turn a project into a Slidev presentation.

This package provides the core building blocks:

- ProjectAnalyzer: gather docs, dependencies, git history and file tree
- SlidesGenerator: write slides.md / slidev.config.ts and drive Slidev
- ConfigManager: per-project settings in .slidev-gen.json
"""

__version__ = "0.1.0"

from .analyzer import ProjectAnalyzer, ProjectContext
from .config import ConfigManager, ProjectConfig
from .errors import InvalidProjectStructure, SlidevGenError
from .generator import SlidesGenerator

__all__ = [
    "ProjectAnalyzer",
    "ProjectContext",
    "SlidesGenerator",
    "ConfigManager",
    "ProjectConfig",
    "SlidevGenError",
    "InvalidProjectStructure",
]
