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
"""CSRF guard configuration.

:class:`CsrfGuardProperties` binds the ``flyguard.csrf`` section of a
:class:`~flyguard.core.config.Config`. :class:`CsrfGuardConfiguration` is the
immutable runtime view handed to :class:`~flyguard.csrf.guard.CsrfGuard`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from flyguard.core.config import Config, config_properties, kebab_case
from flyguard.csrf.actions import Action, build_actions
from flyguard.csrf.classifier import ProtectionClassifier
from flyguard.csrf.token import RandomSource, resolve_prng


def _split(value: Any) -> Any:
    if isinstance(value, str):
        return {part.strip() for part in value.split(",") if part.strip()}
    return value


@config_properties(prefix="flyguard.csrf")
class CsrfGuardProperties(BaseModel):
    """Settings under ``flyguard.csrf`` (kebab-case keys)."""

    model_config = ConfigDict(alias_generator=kebab_case, populate_by_name=True, frozen=True)

    token_name: str = "FLYGUARD_CSRF_TOKEN"
    token_length: int = Field(default=32, ge=1)
    prng: str = "SystemRandom"
    session_key: str = "FLYGUARD_CSRF_TOKEN"
    protect: bool = False
    rotate: bool = False
    ajax: bool = False
    token_per_page: bool = False
    token_per_page_precreate: bool = False
    protected_pages: frozenset[str] = frozenset()
    unprotected_pages: frozenset[str] = frozenset()
    protected_methods: frozenset[str] = frozenset()
    actions: list[dict[str, Any] | str] = Field(default_factory=list)

    @field_validator("protected_pages", "unprotected_pages", mode="before")
    @classmethod
    def _split_pages(cls, value: Any) -> Any:
        return _split(value)

    @field_validator("protected_methods", mode="before")
    @classmethod
    def _normalize_methods(cls, value: Any) -> Any:
        value = _split(value)
        if value is None:
            return frozenset()
        return {str(method).strip().upper() for method in value}


@dataclass(frozen=True)
class CsrfGuardConfiguration:
    """Everything a :class:`~flyguard.csrf.guard.CsrfGuard` needs, resolved once."""

    properties: CsrfGuardProperties
    prng: RandomSource
    actions: tuple[Action, ...] = field(default_factory=tuple)

    @classmethod
    def from_properties(
        cls,
        properties: CsrfGuardProperties,
        actions: list[Action] | None = None,
        prng: RandomSource | None = None,
    ) -> CsrfGuardConfiguration:
        """Resolve the random source and actions named in *properties*.

        Explicit *actions* or *prng* replace the configured ones.
        """
        resolved_actions = actions if actions is not None else build_actions(properties.actions)
        return cls(
            properties=properties,
            prng=prng if prng is not None else resolve_prng(properties.prng),
            actions=tuple(resolved_actions),
        )

    @classmethod
    def from_config(cls, config: Config) -> CsrfGuardConfiguration:
        return cls.from_properties(config.bind(CsrfGuardProperties))

    def classifier(self) -> ProtectionClassifier:
        p = self.properties
        return ProtectionClassifier(
            protect_enabled=p.protect,
            protected_pages=p.protected_pages,
            unprotected_pages=p.unprotected_pages,
            protected_methods=p.protected_methods,
        )

    @property
    def token_name(self) -> str:
        return self.properties.token_name

    @property
    def token_length(self) -> int:
        return self.properties.token_length

    @property
    def session_key(self) -> str:
        return self.properties.session_key

    @property
    def rotate_enabled(self) -> bool:
        return self.properties.rotate

    @property
    def ajax_enabled(self) -> bool:
        return self.properties.ajax

    @property
    def token_per_page(self) -> bool:
        return self.properties.token_per_page

    @property
    def token_per_page_precreate(self) -> bool:
        return self.properties.token_per_page_precreate
