# === FILE: site_harvest/config.py ===
"""
Loading and validation of the SiteHarvest crawl configuration.
Pydantic describes the schema and checks the data.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
    model_validator,
)

DEFAULT_LEGAL_KEYWORDS: tuple[str, ...] = (
    "impressum",
    "datenschutz",
    "agb",
    "privacy",
    "terms",
    "legal",
    "cookies",
    "disclaimer",
)

DEFAULT_NAVIGATION_SELECTORS: tuple[str, ...] = (
    "nav a",
    "header a",
    '[role="navigation"] a',
    ".navigation a",
    ".menu a",
    ".navbar a",
)

UNLIMITED = -1


class HarvestConfig(BaseModel):
    """Configuration of one crawl/download job."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: HttpUrl = Field(..., description="Root URL the crawl starts from.")
    max_pages: int = Field(100, ge=1, description="Hard budget of scraped pages.")
    delay: float = Field(1.0, ge=0, description="Pause after every page fetch (seconds).")
    timeout: float = Field(30.0, gt=0, description="Page render timeout (seconds).")
    user_agent: str = Field("SiteHarvest/1.0 (+content)", min_length=1, description="User-Agent header.")

    max_level: int = Field(3, ge=1, description="Deepest crawl level.")
    level_limits: Dict[int, int] = Field(
        default_factory=lambda: {1: UNLIMITED, 2: UNLIMITED, 3: 1},
        description="Visit cap per level, -1 = unlimited; at the deepest level the cap is per category.",
    )
    legal_keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_LEGAL_KEYWORDS))
    navigation_selectors: List[str] = Field(default_factory=lambda: list(DEFAULT_NAVIGATION_SELECTORS))
    with_navigation_crawl: bool = Field(
        True, description="Follow navigation and footer links only; False follows every anchor."
    )

    download_images: bool = Field(True, description="Download images referenced by scraped pages.")
    output_dir: Path = Field(Path("output"), description="Root directory for results and images.")
    max_asset_size: int = Field(10 * 1024 * 1024, gt=0, description="Per-asset byte ceiling.")
    asset_timeout: float = Field(30.0, gt=0, description="Per-asset timeout (seconds).")
    asset_delay: float = Field(0.1, ge=0, description="Pause after every asset transfer (seconds).")

    @field_validator("base_url", mode="before")
    def _strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("legal_keywords")
    def _lower_keywords(cls, v: List[str]) -> List[str]:
        return [k.strip().lower() for k in v if k.strip()]

    @field_validator("level_limits")
    def _check_limits(cls, v: Dict[int, int]) -> Dict[int, int]:
        bad = {lvl: lim for lvl, lim in v.items() if lim < UNLIMITED or lvl < 1}
        if bad:
            raise ValueError(f"level limits must be >= -1 for levels >= 1, got {bad}")
        return v

    @model_validator(mode="after")
    def _check_deepest_limit(self) -> HarvestConfig:
        if self.level_limits.get(self.max_level) == 0:
            raise ValueError("the deepest level must admit at least one page per category")
        return self

    @property
    def start_url(self) -> str:
        """``base_url`` as a plain string without the slash pydantic appends."""
        return str(self.base_url).rstrip("/")

    @property
    def images_dir(self) -> Path:
        return Path(self.output_dir) / "images"


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> HarvestConfig:
    """
    Read YAML or JSON and return a validated HarvestConfig.
    Raises FileNotFoundError when the config file does not exist.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    try:
        return HarvestConfig(**data)
    except ValidationError:
        raise


__all__ = ["HarvestConfig", "load_config", "UNLIMITED", "DEFAULT_LEGAL_KEYWORDS", "DEFAULT_NAVIGATION_SELECTORS"]
