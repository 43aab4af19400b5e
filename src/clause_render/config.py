"""Renderer configuration loaded from JSON.

Layout thresholds, default-text templates and cache sizing live here so a
host can retune them without touching the render path. Unknown keys are
ignored; missing keys take the defaults below.

Example ``render_config.json``::

    {
      "root_level": 1,
      "headline_max_level": 1,
      "grandchild_min_level": 3,
      "begin_template": "<b>[{label}]</b> ",
      "end_template": "[End of {label}]",
      "strip_markup": true,
      "cache_max_entries": 4096
    }
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from clause_render.default_text import DEFAULT_BEGIN_TEMPLATE, DEFAULT_END_TEMPLATE
from clause_render.io_utils import load_json


@dataclass(frozen=True, slots=True)
class RenderConfig:
    """Tunables for one render session."""
    root_level: int = 1                  # ParentInfo.level handed to top-level paragraphs
    headline_max_level: int = 1          # level <= this renders as headline
    grandchild_min_level: int = 3        # level >= this renders indented
    begin_template: str = DEFAULT_BEGIN_TEMPLATE
    end_template: str = DEFAULT_END_TEMPLATE
    strip_markup: bool = True            # Leaf text: HTML -> display text
    cache_max_entries: int = 4096        # FragmentCache capacity

    def __post_init__(self) -> None:
        if self.root_level < 0:
            raise ValueError(f"root_level must be >= 0, got {self.root_level}")
        if self.headline_max_level < 0:
            raise ValueError(
                f"headline_max_level must be >= 0, got {self.headline_max_level}"
            )
        if self.grandchild_min_level <= self.headline_max_level:
            raise ValueError(
                f"grandchild_min_level ({self.grandchild_min_level}) must be > "
                f"headline_max_level ({self.headline_max_level})"
            )
        if self.cache_max_entries <= 0:
            raise ValueError(
                f"cache_max_entries must be > 0, got {self.cache_max_entries}"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RenderConfig:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_json(cls, path: Path) -> RenderConfig:
        """Load from a render_config.json file."""
        data = load_json(path)
        if not isinstance(data, dict):
            raise ValueError(f"Render config must be a JSON object: {path}")
        return cls.from_dict(data)
