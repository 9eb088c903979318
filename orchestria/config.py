"""
Typed configuration model with precedence-based loader.

Precedence (lowest to highest):
    defaults < config file (YAML) < profile < env vars < CLI flags < per-session overrides
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any

import yaml


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------

@dataclass
class LLMProviderConfig:
    name: str = "gemini"
    model: str = "gemini-2.5-pro"
    api_base: str = "https://generativelanguage.googleapis.com/v1beta/openai"
    api_key_env: str = "GEMINI_API_KEY"
    max_output_tokens: int = 2_048
    temperature: float = 0.7
    timeout_seconds: int = 120
    max_retries: int = 2


@dataclass
class StoreConfig:
    backend: str = "memory"  # "memory" | "http"
    api_url: str = "http://localhost:3001"
    timeout_seconds: float = 10.0


@dataclass
class ChatConfig:
    turn_timeout: float = 60.0
    tool_timeout: float = 15.0
    max_tool_rounds: int = 8
    context_max_items: int = 50
    greeting: str = (
        "Hello. I'm OrchestrIA. I can help manage your tasks and schedule. "
        "What do you need?"
    )


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------

@dataclass
class OrchestriaConfig:
    llm: LLMProviderConfig = field(default_factory=LLMProviderConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    profiles: dict[str, dict[str, Any]] = field(default_factory=dict)

    # ----- per-session overrides (applied last) ----
    _overrides: dict[str, Any] = field(default_factory=dict, repr=False)

    def set_override(self, dotpath: str, value: Any) -> None:
        """Set a per-session override using dot notation (e.g. 'llm.model')."""
        self._overrides[dotpath] = value
        _apply_dotpath(self, dotpath, value)

    def get_override(self, dotpath: str) -> Any | None:
        return self._overrides.get(dotpath)

    def api_key(self) -> str:
        """Read the API key now; it may appear after startup."""
        return os.environ.get(self.llm.api_key_env, "")

    def to_dict(self) -> dict:
        d = asdict(self)
        d.pop("_overrides", None)
        return d


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _apply_dotpath(obj: Any, dotpath: str, value: Any) -> None:
    """Walk obj via dotpath and set the final attribute."""
    parts = dotpath.split(".")
    for part in parts[:-1]:
        obj = getattr(obj, part)
    if not hasattr(obj, parts[-1]):
        raise KeyError(f"Unknown config key: {dotpath}")
    setattr(obj, parts[-1], value)


def _deep_merge(base: dict, overlay: dict) -> dict:
    """Recursively merge overlay into base, returning a new dict."""
    merged = dict(base)
    for k, v in overlay.items():
        if k in merged and isinstance(merged[k], dict) and isinstance(v, dict):
            merged[k] = _deep_merge(merged[k], v)
        else:
            merged[k] = v
    return merged


def _coerce(value: str, target_type: type) -> Any:
    """Coerce a string env value to the target type."""
    if target_type is bool:
        return value.lower() in ("1", "true", "yes", "on")
    if target_type is int:
        return int(value)
    if target_type is float:
        return float(value)
    return value


def _build_section(cls: type, raw: dict) -> Any:
    """Build a dataclass section from a raw dict, ignoring unknown keys."""
    valid_fields = {f.name for f in fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


# ---------------------------------------------------------------------------
# ENV var mapping
# ---------------------------------------------------------------------------

_ENV_MAP: dict[str, tuple[str, type]] = {
    "ORCHESTRIA_LLM_NAME":              ("llm.name", str),
    "ORCHESTRIA_LLM_MODEL":             ("llm.model", str),
    "ORCHESTRIA_LLM_API_BASE":          ("llm.api_base", str),
    "ORCHESTRIA_LLM_API_KEY_ENV":       ("llm.api_key_env", str),
    "ORCHESTRIA_LLM_MAX_OUTPUT":        ("llm.max_output_tokens", int),
    "ORCHESTRIA_LLM_TEMPERATURE":       ("llm.temperature", float),
    "ORCHESTRIA_LLM_TIMEOUT":           ("llm.timeout_seconds", int),
    "ORCHESTRIA_LLM_MAX_RETRIES":       ("llm.max_retries", int),
    "ORCHESTRIA_STORE_BACKEND":         ("store.backend", str),
    "ORCHESTRIA_STORE_API_URL":         ("store.api_url", str),
    "ORCHESTRIA_STORE_TIMEOUT":         ("store.timeout_seconds", float),
    "ORCHESTRIA_CHAT_TURN_TIMEOUT":     ("chat.turn_timeout", float),
    "ORCHESTRIA_CHAT_TOOL_TIMEOUT":     ("chat.tool_timeout", float),
    "ORCHESTRIA_CHAT_MAX_TOOL_ROUNDS":  ("chat.max_tool_rounds", int),
    "ORCHESTRIA_CHAT_CONTEXT_ITEMS":    ("chat.context_max_items", int),
}


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def find_config_path() -> Path | None:
    """Find a config file in the standard locations."""
    candidates = [
        Path.cwd() / "orchestria.yaml",
        Path.cwd() / "orchestria.yml",
        Path.home() / ".config" / "orchestria" / "config.yaml",
    ]
    for p in candidates:
        if p.is_file():
            return p
    return None


def load_config(
    config_path: str | Path | None = None,
    *,
    profile: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> OrchestriaConfig:
    """
    Build an OrchestriaConfig by layering sources in precedence order:

        defaults  <  config file  <  profile  <  env vars  <  CLI flags

    Parameters
    ----------
    config_path : path to YAML config file (optional)
    profile : name of a profile to apply from the config file
    cli_overrides : dict of dotpath -> value CLI flag overrides
    """
    raw: dict[str, Any] = {}

    # --- 1. Config file ---
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.is_file():
            with p.open("r", encoding="utf-8") as f:
                file_data = yaml.safe_load(f) or {}
            raw = _deep_merge(raw, file_data)

    # --- 2. Profile overlay ---
    if profile and "profiles" in raw:
        profile_data = raw.get("profiles", {}).get(profile, {})
        if profile_data:
            raw = _deep_merge(raw, profile_data)

    # --- Build sections from raw ---
    cfg = OrchestriaConfig(
        llm=_build_section(LLMProviderConfig, raw.get("llm", {})),
        store=_build_section(StoreConfig, raw.get("store", {})),
        chat=_build_section(ChatConfig, raw.get("chat", {})),
        profiles=raw.get("profiles", {}),
    )

    # --- 3. Env var overrides ---
    for env_var, (dotpath, target_type) in _ENV_MAP.items():
        val = os.environ.get(env_var)
        if val is not None:
            _apply_dotpath(cfg, dotpath, _coerce(val, target_type))

    # --- 4. CLI flag overrides ---
    if cli_overrides:
        for dotpath, value in cli_overrides.items():
            if value is not None:
                _apply_dotpath(cfg, dotpath, value)

    if cfg.store.backend not in ("memory", "http"):
        raise ValueError(f"Unknown store backend: {cfg.store.backend!r}")

    return cfg
