"""
SendGrid Client -- Configuration Module

A client is configured from an immutable ``ClientConfig``.  Options are
plain functions that take a config and return a new one; they are
applied left to right, so a later option wins for the same field.

Options can also be loaded from a YAML file and the environment, for
applications that want to flip a staging deployment into override or
simulate mode without code changes.

Usage:
    from sendgrid_client.config import apply_options, endpoint, override_address
    cfg = apply_options(endpoint("https://stub.test"), override_address("qa@x.com"))

    from sendgrid_client.config import load_options
    opts = load_options("sendgrid.yaml")       # yaml first, then env vars
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

import yaml

from .models import Address

DEFAULT_ENDPOINT = "https://api.sendgrid.com/v3"
DEFAULT_TIMEOUT = 30.0

ENV_API_KEY = "SENDGRID_API_KEY"


# ===================================================================
# 1. Client Config
# ===================================================================

@dataclass(frozen=True)
class ClientConfig:
    """Settings fixed at client construction time."""
    endpoint: str = DEFAULT_ENDPOINT
    override_address: str = ""        # redirect every recipient here when set
    default_sender: Address = field(default_factory=Address)
    verbose: bool = False             # trace requests and responses
    simulate: bool = False            # never touch the network


Option = Callable[[ClientConfig], ClientConfig]


def apply_options(*options: Option, base: Optional[ClientConfig] = None) -> ClientConfig:
    """Fold options over ``base`` (or the defaults), left to right."""
    cfg = base if base is not None else ClientConfig()
    for opt in options:
        cfg = opt(cfg)
    if not cfg.endpoint:
        cfg = replace(cfg, endpoint=DEFAULT_ENDPOINT)
    return cfg


# ===================================================================
# 2. Options
# ===================================================================

def endpoint(base: str) -> Option:
    """Point the client at a different API base URL."""
    def _apply(cfg: ClientConfig) -> ClientConfig:
        return replace(cfg, endpoint=base)
    return _apply


def override_address(address: str) -> Option:
    """Send every email to ``address`` instead of its real recipients."""
    def _apply(cfg: ClientConfig) -> ClientConfig:
        return replace(cfg, override_address=address)
    return _apply


def default_sender(sender: Address) -> Option:
    """Use ``sender`` for emails whose from / reply-to is left empty."""
    def _apply(cfg: ClientConfig) -> ClientConfig:
        return replace(cfg, default_sender=sender)
    return _apply


def verbose(enabled: bool = True) -> Option:
    def _apply(cfg: ClientConfig) -> ClientConfig:
        return replace(cfg, verbose=enabled)
    return _apply


def simulate(enabled: bool = True) -> Option:
    def _apply(cfg: ClientConfig) -> ClientConfig:
        return replace(cfg, simulate=enabled)
    return _apply


# ===================================================================
# 3. YAML / Environment Loading
# ===================================================================

def _to_bool(value: Any, *, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    lowered = str(value).strip().lower()
    if not lowered:
        return default
    return lowered in {"true", "1", "yes", "y", "on"}


def _read_yaml(yaml_path: Optional[str | Path]) -> dict:
    if yaml_path is None:
        return {}
    path = Path(yaml_path)
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def _options_from_mapping(data: dict) -> list[Option]:
    """Translate a parsed YAML mapping into options.  Unknown keys are ignored."""
    opts: list[Option] = []
    if "endpoint" in data:
        opts.append(endpoint(str(data["endpoint"] or "")))
    if "override_address" in data:
        opts.append(override_address(str(data["override_address"] or "")))
    sender = data.get("default_sender")
    if isinstance(sender, dict):
        opts.append(default_sender(Address.from_dict(sender)))
    if "verbose" in data:
        opts.append(verbose(_to_bool(data["verbose"])))
    if "simulate" in data:
        opts.append(simulate(_to_bool(data["simulate"])))
    return opts


def _options_from_env(environ: dict[str, str]) -> list[Option]:
    opts: list[Option] = []
    if environ.get("SENDGRID_ENDPOINT"):
        opts.append(endpoint(environ["SENDGRID_ENDPOINT"]))
    if "SENDGRID_OVERRIDE_ADDRESS" in environ:
        opts.append(override_address(environ["SENDGRID_OVERRIDE_ADDRESS"]))
    if environ.get("SENDGRID_SENDER_EMAIL"):
        opts.append(default_sender(Address(
            email=environ["SENDGRID_SENDER_EMAIL"],
            name=environ.get("SENDGRID_SENDER_NAME", ""),
        )))
    if "SENDGRID_VERBOSE" in environ:
        opts.append(verbose(_to_bool(environ["SENDGRID_VERBOSE"])))
    if "SENDGRID_SIMULATE" in environ:
        opts.append(simulate(_to_bool(environ["SENDGRID_SIMULATE"])))
    return opts


def load_options(
    yaml_path: Optional[str | Path] = None,
    environ: Optional[dict[str, str]] = None,
) -> list[Option]:
    """Build an option list from a YAML file, then environment variables.

    Args:
        yaml_path: Optional config file.  Missing files contribute nothing.
        environ:   Mapping to read instead of ``os.environ`` (for tests).

    Returns:
        Options in application order; environment values come last and
        therefore win over the file.
    """
    env = dict(os.environ) if environ is None else environ
    return _options_from_mapping(_read_yaml(yaml_path)) + _options_from_env(env)


def load_api_key(
    yaml_path: Optional[str | Path] = None,
    environ: Optional[dict[str, str]] = None,
) -> str:
    """Resolve the API key from the environment, falling back to the file."""
    env = dict(os.environ) if environ is None else environ
    if env.get(ENV_API_KEY):
        return env[ENV_API_KEY]
    return str(_read_yaml(yaml_path).get("api_key") or "")


def describe(cfg: ClientConfig) -> Iterable[str]:
    """Human-readable lines for a config, for CLI startup logging."""
    sender = cfg.default_sender
    yield f"Endpoint      : {cfg.endpoint}"
    yield f"Override addr : {cfg.override_address or '(none)'}"
    yield f"Default sender: {f'{sender.name} <{sender.email}>' if sender.email else '(none)'}"
    yield f"Verbose       : {cfg.verbose}"
    yield f"Simulate      : {cfg.simulate}"
