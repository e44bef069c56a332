"""Configuration loading utilities for the resume assistant.

This module handles layered configuration:
1. Explicit path argument (highest precedence)
2. Environment variable RESUME_ASSISTANT_CONFIG
3. Fallback to "config/default.yaml"

It also supports optional overrides from environment variables with prefix
``RESUME_ASSISTANT__`` (e.g., RESUME_ASSISTANT__UPSTREAM__TIMEOUT=10).

The upstream agent settings are turned into an immutable
:class:`UpstreamConfig` once, at application startup.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "RESUME_ASSISTANT__"
CONFIG_ENV = "RESUME_ASSISTANT_CONFIG"
DEFAULT_CONFIG_PATH = "config/default.yaml"

DEFAULT_AGENT_ID = "6942a7744f5531c6f3c71038"
DEFAULT_ENDPOINT = "https://api.anthropic.com/agents"
DEFAULT_CREDENTIAL_ENV = "ANTHROPIC_API_KEY"
DEFAULT_TIMEOUT = 30.0

DEFAULT_REPLY_FIELDS: Tuple[str, ...] = ("response", "message", "data")


# -----------------------------
# Upstream contracts
# -----------------------------
@dataclass(frozen=True)
class UpstreamContract:
    """Wire contract of one agent provider."""
    name: str
    path: str                            # appended to the base URL; may use {agent_id}
    auth_header: str
    auth_scheme: str = ""                # e.g. "Bearer"; empty sends the raw credential
    message_field: str = "message"
    agent_field: Optional[str] = None    # body field carrying the agent id, if any
    reply_fields: Tuple[str, ...] = DEFAULT_REPLY_FIELDS

    def auth_value(self, credential: str) -> str:
        if self.auth_scheme:
            return f"{self.auth_scheme} {credential}"
        return credential


CONTRACTS: Dict[str, UpstreamContract] = {
    "agent-api-key": UpstreamContract(
        name="agent-api-key",
        path="/chat",
        auth_header="x-api-key",
        message_field="message",
        agent_field="agent_id",
    ),
    "agent-bearer": UpstreamContract(
        name="agent-bearer",
        path="/agents/{agent_id}/messages",
        auth_header="Authorization",
        auth_scheme="Bearer",
        message_field="input",
    ),
}


@dataclass(frozen=True)
class UpstreamConfig:
    agent_id: str
    endpoint_base_url: str
    credential: str = field(default="", repr=False)
    contract: UpstreamContract = CONTRACTS["agent-api-key"]
    timeout: float = DEFAULT_TIMEOUT

    @property
    def url(self) -> str:
        path = self.contract.path.format(agent_id=self.agent_id)
        return self.endpoint_base_url.rstrip("/") + "/" + path.lstrip("/")


# -----------------------------
# YAML + env layering
# -----------------------------
def _default_config() -> Dict[str, Any]:
    return {
        "server": {"cors_origins": ["*"]},
        "logging": {"level": "INFO"},
        "upstream": {
            "contract": "agent-api-key",
            "endpoint_base_url": DEFAULT_ENDPOINT,
            "agent_id": DEFAULT_AGENT_ID,
            "credential_env": DEFAULT_CREDENTIAL_ENV,
            "timeout": DEFAULT_TIMEOUT,
        },
        "client": {"proxy_url": "http://127.0.0.1:8000", "timeout": DEFAULT_TIMEOUT},
    }


def _coerce_env_value(raw: str) -> Any:
    """Env values arrive as text; turn "true"/"3"/"2.5" into bool/int/float."""
    if raw.lower() in {"true", "false"}:
        return raw.lower() == "true"
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue
    return raw


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Merge RESUME_ASSISTANT__SECTION__KEY variables into ``cfg`` in place."""
    for key, raw in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        *sections, leaf = key[len(ENV_PREFIX):].lower().split("__")
        target = cfg
        for name in sections:
            if not isinstance(target.get(name), dict):
                target[name] = {}
            target = target[name]
        target[leaf] = _coerce_env_value(raw)
    return cfg


def _read_yaml(path_obj: Path) -> Dict[str, Any]:
    try:
        cfg = yaml.safe_load(path_obj.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise RuntimeError(f"Failed to parse config file {path_obj}: {e}") from e
    if not isinstance(cfg, dict):
        raise RuntimeError(f"Invalid config format in {path_obj}, expected a mapping.")
    return cfg


def load_config(path: str | None = None) -> Dict[str, Any]:
    """Return the merged configuration dict.

    ``path`` wins over ``$RESUME_ASSISTANT_CONFIG``, which wins over
    ``config/default.yaml``. A missing file falls back to built-in defaults.
    ``RESUME_ASSISTANT__*`` variables are applied last.
    """
    path_obj = Path(path or os.environ.get(CONFIG_ENV, DEFAULT_CONFIG_PATH))
    if path_obj.exists():
        cfg = _read_yaml(path_obj)
    else:
        logger.warning("config file not found at %s; using defaults", path_obj)
        cfg = _default_config()
    return _apply_env_overrides(cfg)


# -----------------------------
# Upstream settings
# -----------------------------
def resolve_contract(value: Any) -> UpstreamContract:
    """Return a contract from a preset name or an inline mapping."""
    if value is None:
        return CONTRACTS["agent-api-key"]
    if isinstance(value, str):
        try:
            return CONTRACTS[value]
        except KeyError:
            raise RuntimeError(
                f"Unknown upstream contract {value!r}; expected one of {sorted(CONTRACTS)}"
            ) from None
    if isinstance(value, Mapping):
        base = CONTRACTS.get(str(value.get("preset", "")))
        values: Dict[str, Any] = {}
        if base is not None:
            values.update(asdict(base))
        values.update({k: v for k, v in value.items() if k != "preset"})
        values.setdefault("name", "custom")
        if "reply_fields" in values:
            values["reply_fields"] = tuple(values["reply_fields"])
        try:
            return UpstreamContract(**values)
        except TypeError as e:
            raise RuntimeError(f"Invalid upstream contract: {e}") from e
    raise RuntimeError(f"Invalid upstream contract: {value!r}")


def upstream_from_config(cfg: Dict[str, Any]) -> UpstreamConfig:
    """Build the immutable upstream settings from a loaded config dict."""
    up = (cfg or {}).get("upstream", {}) or {}
    credential = up.get("credential")
    if credential is None:
        env_name = up.get("credential_env") or DEFAULT_CREDENTIAL_ENV
        credential = os.environ.get(str(env_name), "")
        if not credential:
            logger.warning("no upstream credential in %s; the agent API will reject calls", env_name)

    return UpstreamConfig(
        agent_id=str(up.get("agent_id") or DEFAULT_AGENT_ID),
        endpoint_base_url=str(up.get("endpoint_base_url") or DEFAULT_ENDPOINT),
        credential=str(credential),
        contract=resolve_contract(up.get("contract")),
        timeout=float(up.get("timeout", DEFAULT_TIMEOUT)),
    )
