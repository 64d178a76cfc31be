"""
Typed configuration model with precedence-based loader.

Precedence (lowest to highest):
    defaults < config file (YAML) < env vars < CLI flags
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------

@dataclass
class LLMConfig:
    api_url: str = ""
    api_key: str = ""
    model: str = ""
    timeout_seconds: int = 120
    temperature: float | None = None

    def missing(self) -> list[str]:
        """Environment names of required settings that are empty."""
        required = (("API_KEY", self.api_key), ("API_URL", self.api_url), ("MODEL", self.model))
        return [name for name, value in required if not value]


@dataclass
class InferenceConfig:
    max_rounds: int = 8


@dataclass
class LoggingConfig:
    level: str = "WARNING"


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------

@dataclass
class NarratorConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self, *, redact: bool = True) -> dict:
        d = asdict(self)
        if redact and d["llm"]["api_key"]:
            d["llm"]["api_key"] = d["llm"]["api_key"][:4] + "..."
        return d


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _apply_dotpath(obj: Any, dotpath: str, value: Any) -> None:
    """Walk obj via dotpath and set the final attribute."""
    parts = dotpath.split(".")
    for part in parts[:-1]:
        obj = getattr(obj, part)
    setattr(obj, parts[-1], value)


def _coerce(value: str, target_type: type) -> Any:
    """Coerce a string env value to the target type."""
    if target_type is int:
        return int(value)
    if target_type is float:
        return float(value)
    return value


def _build_section(cls: type, raw: dict) -> Any:
    """Build a dataclass section from a raw dict, ignoring unknown keys."""
    valid_fields = {f.name for f in fields(cls)}
    filtered = {k: v for k, v in (raw or {}).items() if k in valid_fields}
    return cls(**filtered)


# ---------------------------------------------------------------------------
# ENV var mapping
# ---------------------------------------------------------------------------

_ENV_MAP: dict[str, tuple[str, type]] = {
    "API_KEY":                  ("llm.api_key", str),
    "API_URL":                  ("llm.api_url", str),
    "MODEL":                    ("llm.model", str),
    "NARRATOR_LLM_TIMEOUT":     ("llm.timeout_seconds", int),
    "NARRATOR_LLM_TEMPERATURE": ("llm.temperature", float),
    "NARRATOR_MAX_ROUNDS":      ("inference.max_rounds", int),
    "NARRATOR_LOG_LEVEL":       ("logging.level", str),
}


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load_config(
    config_path: str | Path | None = None,
    *,
    cli_overrides: dict[str, Any] | None = None,
    environ: dict[str, str] | None = None,
) -> NarratorConfig:
    """
    Build a NarratorConfig by layering sources in precedence order:

        defaults  <  config file  <  env vars  <  CLI flags

    Parameters
    ----------
    config_path : path to YAML config file (optional)
    cli_overrides : dict of dotpath -> value CLI flag overrides; ``None``
        values are skipped
    environ : mapping used instead of ``os.environ`` (tests)
    """
    raw: dict[str, Any] = {}

    # --- 1. Config file ---
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.is_file():
            with p.open("r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}

    cfg = NarratorConfig(
        llm=_build_section(LLMConfig, raw.get("llm", {})),
        inference=_build_section(InferenceConfig, raw.get("inference", {})),
        logging=_build_section(LoggingConfig, raw.get("logging", {})),
    )

    # --- 2. Env var overrides ---
    env = os.environ if environ is None else environ
    for env_var, (dotpath, target_type) in _ENV_MAP.items():
        val = env.get(env_var)
        if val:
            _apply_dotpath(cfg, dotpath, _coerce(val, target_type))

    # --- 3. CLI flag overrides ---
    if cli_overrides:
        for dotpath, value in cli_overrides.items():
            if value is not None:
                _apply_dotpath(cfg, dotpath, value)

    if cfg.inference.max_rounds < 1:
        raise ValueError(
            f"inference.max_rounds must be at least 1, got {cfg.inference.max_rounds}"
        )

    return cfg
