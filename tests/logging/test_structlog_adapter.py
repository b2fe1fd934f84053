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
"""Tests for StructlogAdapter and LoggingProperties."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
import structlog

from flyguard.core.config import Config
from flyguard.logging import LoggingProperties, StructlogAdapter


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()
    logging.getLogger().setLevel(logging.WARNING)
    for name in ("flyguard.csrf", "flyguard.csrf.store"):
        logging.getLogger(name).setLevel(logging.NOTSET)


def _config(**logging_section) -> Config:
    return Config({"flyguard": {"logging": logging_section}})


# ---------------------------------------------------------------------------
# LoggingProperties
# ---------------------------------------------------------------------------


class TestLoggingProperties:
    def test_defaults(self) -> None:
        properties = LoggingProperties()
        assert properties.format == "console"
        assert properties.root_level == "INFO"
        assert properties.logger_levels == {}

    def test_levels_are_upper_cased(self) -> None:
        properties = _config(level={"root": "warning", "flyguard.csrf": "debug"}).bind(LoggingProperties)
        assert properties.root_level == "WARNING"
        assert properties.logger_levels == {"flyguard.csrf": "DEBUG"}

    def test_unknown_level_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="unknown log level"):
            _config(level={"root": "LOUD"}).bind(LoggingProperties)

    def test_unknown_format_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="LoggingProperties"):
            _config(format="xml").bind(LoggingProperties)


# ---------------------------------------------------------------------------
# StructlogAdapter
# ---------------------------------------------------------------------------


class TestStructlogAdapter:
    def test_configure_applies_levels_and_format(self) -> None:
        adapter = StructlogAdapter()
        properties = adapter.configure(
            _config(format="JSON", level={"root": "warning", "flyguard.csrf": "debug"})
        )

        assert properties is adapter.properties
        assert properties.format == "json"
        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("flyguard.csrf").level == logging.DEBUG

    def test_configure_from_packaged_defaults(self) -> None:
        properties = StructlogAdapter().configure(Config.with_defaults())
        assert properties.format == "console"
        assert logging.getLogger().level == logging.INFO

    def test_set_level(self) -> None:
        StructlogAdapter().set_level("flyguard.csrf.store", "error")
        assert logging.getLogger("flyguard.csrf.store").level == logging.ERROR

    def test_get_logger_returns_structlog_logger(self) -> None:
        logger = StructlogAdapter().get_logger("flyguard.test")
        assert hasattr(logger, "info")
        assert hasattr(logger, "bind")
