"""Runtime settings for the wire layer.

Settings come from an optional YAML file, then from ``PROVIDER_WIRE_*``
environment variables, which take precedence::

    state_chunk_size: 4194304
    ignore_undefined_attributes: false
    max_state_size: 104857600
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from provider_wire.errors import ProviderWireError
from provider_wire.json_codec import UnmarshalOpts
from provider_wire.state_bytes import DEFAULT_CHUNK_SIZE

ENV_PREFIX = "PROVIDER_WIRE_"

_ENV_FIELDS = {
    "state_chunk_size": f"{ENV_PREFIX}STATE_CHUNK_SIZE",
    "ignore_undefined_attributes": f"{ENV_PREFIX}IGNORE_UNDEFINED_ATTRIBUTES",
    "max_state_size": f"{ENV_PREFIX}MAX_STATE_SIZE",
}


class WireConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    state_chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)
    ignore_undefined_attributes: bool = False
    max_state_size: int | None = Field(default=None, gt=0)

    def unmarshal_opts(self) -> UnmarshalOpts:
        return UnmarshalOpts(ignore_undefined_attributes=self.ignore_undefined_attributes)


def load_wire_config(path: Path | str | None = None, environ: Mapping[str, str] | None = None) -> WireConfig:
    """Build a ``WireConfig`` from ``path`` (if given) and the environment.

    Raises ``ProviderWireError`` when the file is missing or malformed, or
    when a setting fails validation.
    """
    raw: dict = {}
    if path is not None:
        config_file = Path(path)
        if not config_file.exists():
            raise ProviderWireError(f"Config file not found: {config_file}")
        try:
            with open(config_file, "r", encoding="utf-8") as handle:
                loaded = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ProviderWireError(f"Config file is not valid YAML: {config_file}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ProviderWireError(f"Config file must be a mapping: {config_file}")
        raw.update(loaded)

    environ = os.environ if environ is None else environ
    for field, env_var in _ENV_FIELDS.items():
        env_value = environ.get(env_var, "").strip()
        if env_value:
            logger.debug(f"{env_var} overrides {field}")
            raw[field] = env_value

    try:
        return WireConfig.model_validate(raw)
    except ValidationError as exc:
        raise ProviderWireError(f"Invalid provider_wire settings: {exc}") from exc
