# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""StructlogAdapter — routes the guard's structlog events through stdlib logging.

Every guard module logs through ``structlog.get_logger("flyguard.<area>")``;
this adapter decides how those events are rendered and which levels reach
the output, from the ``flyguard.logging`` section::

    flyguard:
      logging:
        format: json
        level:
          root: INFO
          flyguard.csrf: DEBUG
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from flyguard.core.config import Config, config_properties


@config_properties(prefix="flyguard.logging")
class LoggingProperties(BaseModel):
    """Settings under ``flyguard.logging``; ``level`` maps logger names to levels."""

    model_config = ConfigDict(frozen=True)

    format: Literal["console", "json"] = "console"
    level: dict[str, str] = Field(default_factory=lambda: {"root": "INFO"})

    @field_validator("format", mode="before")
    @classmethod
    def _lower_format(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @field_validator("level")
    @classmethod
    def _check_levels(cls, value: dict[str, str]) -> dict[str, str]:
        levels = {name: str(level).upper() for name, level in value.items()}
        unknown = sorted(lvl for lvl in levels.values() if lvl not in logging.getLevelNamesMapping())
        if unknown:
            raise ValueError(f"unknown log level(s): {', '.join(unknown)}")
        return levels

    @property
    def root_level(self) -> str:
        return self.level.get("root", "INFO")

    @property
    def logger_levels(self) -> dict[str, str]:
        return {name: lvl for name, lvl in self.level.items() if name != "root"}


class StructlogAdapter:
    """Configures structlog and the stdlib loggers it writes to."""

    def __init__(self) -> None:
        self._properties = LoggingProperties()

    @property
    def properties(self) -> LoggingProperties:
        return self._properties

    def configure(self, config: Config) -> LoggingProperties:
        """Apply the ``flyguard.logging`` section of *config* and return it."""
        self._properties = config.bind(LoggingProperties)
        renderer: structlog.types.Processor = (
            structlog.processors.JSONRenderer()
            if self._properties.format == "json"
            else structlog.dev.ConsoleRenderer()
        )
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.UnicodeDecoder(),
                renderer,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=self._properties.root_level,
            force=True,
        )
        for name, level in self._properties.logger_levels.items():
            self.set_level(name, level)
        return self._properties

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(level.upper())
