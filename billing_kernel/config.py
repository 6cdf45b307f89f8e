"""
Settings loader (``billing_kernel.config``).

Responsibility
--------------
Builds the frozen ``BillingSettings`` used by the engine, the invoice builder
and the parameter service.  Values come from three layers, later layers
winning:

1. dataclass defaults,
2. an optional YAML file (``load_settings(path)`` or ``BILLING_CONFIG``),
3. ``BILLING_*`` environment variables.

Failure modes
-------------
* Missing YAML file named explicitly -> ``FileNotFoundError`` propagates.
* Malformed YAML -> ``yaml.YAMLError`` propagates.
* Unknown keys, wrong types, non-positive timeout -> ``ConfigurationError``.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, fields, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Mapping

import yaml

from billing_kernel.exceptions import ConfigurationError

ENV_PREFIX = "BILLING_"
CONFIG_PATH_ENV = "BILLING_CONFIG"


@dataclass(frozen=True)
class BillingSettings:
    """
    Runtime settings for the billing kernel.

    The parameter names are the keys in the ``parameters`` table that hold
    the two sequence counters and the tax rate.
    """

    database_url: str = "sqlite:///billing.db"
    invoice_sequence: str = "invoice_counter"
    invoice_line_sequence: str = "invoice_line_counter"
    tax_rate_parameter: str = "tax_rate_percent"
    default_tax_rate: str = "12"
    commit_lock_timeout: float = 10.0
    log_level: str = "INFO"

    @property
    def sequence_names(self) -> tuple[str, str]:
        return (self.invoice_sequence, self.invoice_line_sequence)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top-level YAML node must be a mapping")
    # Allow the settings to live under a "billing:" section
    if set(data) == {"billing"} and isinstance(data["billing"], dict):
        data = data["billing"]
    return data


def _coerce(name: str, raw: Any, target: type) -> Any:
    if target is float:
        try:
            return float(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(name, f"expected a number, got {raw!r}") from exc
    if raw is None:
        raise ConfigurationError(name, "value must not be empty")
    return str(raw)


def _validate(settings: BillingSettings) -> BillingSettings:
    timeout = settings.commit_lock_timeout
    if not math.isfinite(timeout) or timeout <= 0:
        raise ConfigurationError(
            "commit_lock_timeout", "must be a finite number of seconds greater than zero"
        )
    if not isinstance(logging.getLevelName(settings.log_level.upper()), int):
        raise ConfigurationError("log_level", f"unknown level {settings.log_level!r}")
    names = (
        settings.invoice_sequence,
        settings.invoice_line_sequence,
        settings.tax_rate_parameter,
    )
    if any(not n.strip() for n in names):
        raise ConfigurationError("parameter names", "must not be blank")
    if len(set(names)) != len(names):
        raise ConfigurationError("parameter names", "counters and tax rate must use distinct names")
    try:
        rate = Decimal(settings.default_tax_rate)
    except InvalidOperation as exc:
        raise ConfigurationError("default_tax_rate", "must be a decimal number") from exc
    if not rate.is_finite() or rate < 0:
        raise ConfigurationError("default_tax_rate", "must be zero or positive")
    return settings


def settings_from_mapping(data: Mapping[str, Any], base: BillingSettings | None = None) -> BillingSettings:
    """Overlay a mapping of setting names onto ``base`` (or the defaults)."""
    base = base or BillingSettings()
    types = {f.name: f.type for f in fields(BillingSettings)}
    resolved = {"float": float, "str": str}
    updates: dict[str, Any] = {}
    for key, raw in data.items():
        if key not in types:
            raise ConfigurationError(key, "unknown setting")
        updates[key] = _coerce(key, raw, resolved[types[key]])
    return _validate(replace(base, **updates))


def load_settings(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> BillingSettings:
    """
    Resolve settings from defaults, an optional YAML file and the environment.

    Args:
        path: YAML settings file.  Falls back to ``$BILLING_CONFIG`` if unset.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Validated, frozen ``BillingSettings``.
    """
    env = os.environ if environ is None else environ

    settings = BillingSettings()
    config_path = path or env.get(CONFIG_PATH_ENV)
    if config_path:
        settings = settings_from_mapping(load_yaml_file(Path(config_path)), settings)

    overrides = {
        f.name: env[ENV_PREFIX + f.name.upper()]
        for f in fields(BillingSettings)
        if ENV_PREFIX + f.name.upper() in env
    }
    return settings_from_mapping(overrides, settings)
