"""
Per-project configuration stored in `.slidev-gen.json`.

API keys are never written here; they come from the command line or the
environment.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from .errors import InvalidConfiguration
from .utils import ensure_path


CONFIG_FILE_NAME = ".slidev-gen.json"


class ProjectConfig(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    # Presentation settings
    slides_path: str = "./.slides"
    model: str = "gpt-4"
    theme: str = "default"

    # Deployment settings
    deployment_type: Literal["github", "netlify", "vercel"] = "github"
    custom_domain: Optional[str] = None

    def merged(self, overrides: Dict[str, Any]) -> "ProjectConfig":
        """
        Return a copy with every non-None override applied and re-validated.
        """
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return ProjectConfig.model_validate(data)
        except ValidationError as e:
            raise InvalidConfiguration(f"Invalid configuration format: {_errors(e)}", e) from e


class ConfigManager:
    """
    Load and save the project configuration file.
    """

    def __init__(self, project_root: Path) -> None:
        self.project_root = Path(project_root)
        self.config_path = self.project_root / CONFIG_FILE_NAME

    def load_config(self) -> ProjectConfig:
        try:
            text = self.config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ProjectConfig()
        except OSError as e:
            raise InvalidConfiguration("Failed to load configuration", e) from e

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidConfiguration("Configuration file contains invalid JSON", e) from e

        try:
            return ProjectConfig.model_validate(data)
        except ValidationError as e:
            raise InvalidConfiguration(f"Invalid configuration format: {_errors(e)}", e) from e

    def save_config(self, config: ProjectConfig) -> None:
        try:
            validated = ProjectConfig.model_validate(config.model_dump())
        except ValidationError as e:
            raise InvalidConfiguration(f"Invalid configuration format: {_errors(e)}", e) from e

        try:
            ensure_path(self.config_path.parent)
            payload = validated.model_dump(by_alias=True, exclude_none=True)
            self.config_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            raise InvalidConfiguration("Failed to save configuration", e) from e


def _errors(error: ValidationError) -> str:
    return ", ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in error.errors()
    )
