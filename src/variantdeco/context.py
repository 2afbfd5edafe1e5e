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
"""Decoration context with lazy initialization.

A `DecorationContext` owns one metadata store, one registry and one scheduler, so independent consumers (and tests)
can work against isolated state. Builders and annotation factories that are not handed a context explicitly use the
process-wide `DECORATION_CONTEXT`, which is only created on first access.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from variantdeco.config import DecorationConfig
from variantdeco.metadata import MetadataStore
from variantdeco.oracle import ReflectionTypeOracle
from variantdeco.protocol import TypeOracle
from variantdeco.registry import DecorationRegistry
from variantdeco.scheduler import DecorationScheduler

log = logging.getLogger(__name__)


class DecorationContext:
    def __init__(self, config: Optional[DecorationConfig] = None, oracle: Optional[TypeOracle] = None) -> None:
        self.config = config or DecorationConfig()
        self.oracle: TypeOracle = oracle or ReflectionTypeOracle()
        self.metadata = MetadataStore(self.config)
        self.registry = DecorationRegistry(self.metadata)
        self.scheduler = DecorationScheduler(self.metadata, self.registry)
        self.metadata.connect_pending_resolver(self.scheduler.resolve)

    @property
    def default_variant(self) -> str:
        return self.config.default_variant

    def __repr__(self) -> str:
        return f"DecorationContext(default_variant={self.default_variant!r}, metadata={self.metadata!r})"


class LazyDecorationContext:
    """Lazy-initializing wrapper around `DecorationContext`.

    The wrapped context is created on first attribute access. `activate` temporarily substitutes another context,
    which is how isolated contexts are made visible to builders and factories that default to this singleton.
    """

    def __init__(self) -> None:
        self._context: Optional[DecorationContext] = None
        self._lock = threading.RLock()

    def _ensure_initialized(self) -> None:
        if self._context is None:
            with self._lock:
                if self._context is None:
                    self._context = DecorationContext()
                    log.debug("Initialized the default decoration context")

    @property
    def context(self) -> DecorationContext:
        self._ensure_initialized()
        assert self._context is not None
        return self._context

    @contextmanager
    def activate(self, context: DecorationContext) -> Iterator[DecorationContext]:
        with self._lock:
            self._ensure_initialized()
            previous, self._context = self._context, context
        try:
            yield context
        finally:
            with self._lock:
                self._context = previous

    def __getattr__(self, name: str) -> Any:
        # only called when the attribute is not found on the wrapper itself
        self._ensure_initialized()
        return getattr(self._context, name)

    def __repr__(self) -> str:
        # avoid triggering initialization with repr
        return f"LazyDecorationContext(initialized={self._context is not None})"


DECORATION_CONTEXT = LazyDecorationContext()


def resolve_context(context: Optional[DecorationContext] = None) -> DecorationContext:
    """Return ``context`` when given, else the context currently active in `DECORATION_CONTEXT`."""
    return context if context is not None else DECORATION_CONTEXT.context
