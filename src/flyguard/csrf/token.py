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
"""CSRF token generation.

Tokens are the hex encoding of ``length`` random bytes drawn from a
cryptographically secure source, so a token is always ``2 * length``
characters long and comparisons are plain string equality.
"""

from __future__ import annotations

import secrets
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from flyguard.kernel.exceptions import TokenGenerationException


@runtime_checkable
class RandomSource(Protocol):
    """A cryptographically secure byte source."""

    def randbytes(self, n: int) -> bytes: ...


_PRNG_FACTORIES: dict[str, Callable[[], RandomSource]] = {
    "systemrandom": secrets.SystemRandom,
    "system": secrets.SystemRandom,
}


def resolve_prng(name: str) -> RandomSource:
    """Return the random source registered under *name* (case-insensitive).

    Raises:
        TokenGenerationException: If *name* is not a supported source.
    """
    factory = _PRNG_FACTORIES.get(name.strip().lower())
    if factory is None:
        supported = ", ".join(sorted(_PRNG_FACTORIES))
        raise TokenGenerationException(
            f"unsupported random source '{name}' (supported: {supported})",
            context={"prng": name},
        )
    return factory()


def generate_token(prng: RandomSource, length: int) -> str:
    """Generate a new token from *length* random bytes.

    Raises:
        TokenGenerationException: If *length* is not positive or the source fails.
    """
    if length < 1:
        raise TokenGenerationException(
            f"unable to generate the random token - invalid length {length}",
            context={"length": length},
        )
    try:
        return prng.randbytes(length).hex()
    except Exception as exc:
        raise TokenGenerationException(
            f"unable to generate the random token - {exc}",
            context={"length": length},
        ) from exc
