from __future__ import annotations

from collections.abc import Iterator

import pytest

from dibind.context import ContextRegistry
from dibind.context import context as default_context


@pytest.fixture()
def dibind_context() -> Iterator[ContextRegistry]:
    """Provide an isolated context registry for one test.

    Pass it to containers as ``Container(..., context=dibind_context)``. Every
    container still registered when the test ends is disposed, so names can be
    reused across tests.

    Yields:
        A new ``ContextRegistry``.

    """
    registry = ContextRegistry()
    try:
        yield registry
    finally:
        registry.global_dispose()


@pytest.fixture()
def dibind_default_context() -> Iterator[ContextRegistry]:
    """Yield the process-wide default registry and tear it down afterwards.

    Use for code that creates containers without ``context=``.

    Yields:
        ``dibind.context.context`` after it was cleared.

    """
    default_context.global_dispose()
    try:
        yield default_context
    finally:
        default_context.global_dispose()
