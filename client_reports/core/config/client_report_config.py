"""Client report configuration model."""

from __future__ import annotations

import os
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX: str = "CLIENT_REPORTS_"


class ClientReportConfig(BaseModel):
    """Structured client report configuration.

    JSON example:
        "client_reports": {
          "enabled": true,
          "role": "leaf",
          "flush_interval_seconds": 30.0,
          "piggyback": true
        }
    """

    enabled: bool = True
    role: Literal["leaf", "relay"] = "leaf"
    flush_interval_seconds: float = Field(default=30.0, gt=0)
    piggyback: bool = True

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> ClientReportConfig:
        """Create a ClientReportConfig instance from a JSON-compatible object."""
        return cls.model_validate(obj)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ClientReportConfig:
        """Create a config from ``CLIENT_REPORTS_*`` environment variables.

        Unset variables keep their defaults. Booleans accept the usual
        pydantic spellings (``true``/``false``, ``1``/``0``, ``yes``/``no``).
        Invalid values raise ``pydantic.ValidationError``.
        """
        env = os.environ if environ is None else environ

        raw: dict[str, Any] = {}
        for field_name in cls.model_fields:
            value = env.get(ENV_PREFIX + field_name.upper())
            if value is None or not value.strip():
                continue
            raw[field_name] = value.strip()

        return cls.model_validate(raw)
