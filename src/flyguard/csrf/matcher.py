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
"""URI pattern matching for protected/unprotected page lists.

Three pattern forms are understood:

* exact paths (``/admin/login``)
* prefix wildcards (``/admin/*``, and ``/*`` for every path)
* extension wildcards (``*.jsp``)
"""

from __future__ import annotations


def matches_exact(pattern: str, path: str) -> bool:
    """Case-sensitive string equality."""
    return pattern == path


def matches(pattern: str, path: str) -> bool:
    """Return ``True`` if *path* matches *pattern*.

    Rules are checked in a fixed priority: exact equality, ``/*``, prefix
    wildcard, extension wildcard.
    """
    if pattern == path:
        return True

    if pattern == "/*":
        return True

    if pattern.endswith("/*"):
        return _matches_prefix(pattern[:-2], path)

    if pattern.startswith("*."):
        return _matches_extension(pattern[2:], path)

    return False


def _matches_prefix(prefix: str, path: str) -> bool:
    # "/foo/*" matches "/foo", "/foo/" and "/foo/bar", never "/foobar"
    if not path.startswith(prefix):
        return False
    return len(path) == len(prefix) or path[len(prefix)] == "/"


def _matches_extension(extension: str, path: str) -> bool:
    slash = path.rfind("/")
    period = path.rfind(".")
    if slash < 0 or period <= slash or period == len(path) - 1:
        return False
    return path[period + 1 :] == extension
