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
"""ProtectionClassifier — decides which (path, method) pairs need a token."""

from __future__ import annotations

from collections.abc import Iterable

from flyguard.csrf.matcher import matches, matches_exact


class ProtectionClassifier:
    """Classifies requests against configured page and method sets.

    Args:
        protect_enabled: When ``True`` unmatched paths default to
            unprotected; when ``False`` they default to *protected*.
        protected_pages: Patterns that require a token.
        unprotected_pages: Patterns exempt from validation. Evaluated after
            ``protected_pages``, so pattern overlaps resolve to unprotected.
        protected_methods: HTTP methods that require a token. Empty means
            every method.
    """

    def __init__(
        self,
        protect_enabled: bool,
        protected_pages: Iterable[str] = (),
        unprotected_pages: Iterable[str] = (),
        protected_methods: Iterable[str] = (),
    ) -> None:
        self._protect_enabled = protect_enabled
        self._protected_pages = frozenset(protected_pages)
        self._unprotected_pages = frozenset(unprotected_pages)
        self._protected_methods = frozenset(m.upper() for m in protected_methods)

    @property
    def protected_pages(self) -> frozenset[str]:
        return self._protected_pages

    @property
    def unprotected_pages(self) -> frozenset[str]:
        return self._unprotected_pages

    @property
    def protected_methods(self) -> frozenset[str]:
        return self._protected_methods

    def is_protected_page(self, path: str) -> bool:
        """Return whether *path* requires a token.

        Exact entries in either list return immediately; pattern entries
        only set the running default.
        """
        result = not self._protect_enabled

        for pattern in self._protected_pages:
            if matches_exact(pattern, path):
                return True
            if matches(pattern, path):
                result = True

        for pattern in self._unprotected_pages:
            if matches_exact(pattern, path):
                return False
            if matches(pattern, path):
                result = False

        return result

    def is_protected_method(self, method: str) -> bool:
        return not self._protected_methods or method.upper() in self._protected_methods

    def is_protected_page_and_method(self, path: str, method: str) -> bool:
        return self.is_protected_page(path) and self.is_protected_method(method)
