"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
import os
from typing import Callable

import pytest

from dotlottie.core.builder import DotLottie
from dotlottie.infrastructure.fetch import FetchResponse


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    run_network = os.getenv("RUN_REQUIRES_NETWORK", "").lower() in {"1", "true", "yes"}
    for item in items:
        if "requires_network" in item.keywords and not run_network:
            item.add_marker(pytest.mark.skip(reason="requires network access"))


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("DOTLOTTIE_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def build() -> Callable[[DotLottie], bytes]:
    """Run a container build to completion from synchronous tests."""
    def _build(container: DotLottie) -> bytes:
        return asyncio.run(container.build())

    return _build


class StubFetcher:
    """Serves canned responses by url and records requests."""

    def __init__(self, responses: dict[str, FetchResponse] | None = None) -> None:
        self.responses = dict(responses or {})
        self.requested: list[str] = []

    def __call__(self, url: str) -> FetchResponse:
        self.requested.append(url)
        return self.responses[url]


@pytest.fixture
def stub_fetcher() -> StubFetcher:
    return StubFetcher()
