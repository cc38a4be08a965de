"""
Bridge between Streamlit script runs and the application event loop.

Streamlit executes the script on short-lived worker threads, while the
session controller needs one long-lived asyncio loop for its tick and
encoder tasks. ``EventLoopThread`` owns that loop on a daemon thread and
the UI hands coroutines to it.
"""

import asyncio
import logging
import threading
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

import streamlit as st

from src.core.config import get_settings
from src.core.context import AppContext, create_app_context

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventLoopThread:
    """A dedicated asyncio loop running on a background thread."""

    def __init__(self, name: str = "screenvault-loop") -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def run(self, coro: Coroutine[Any, Any, T], timeout: float | None = None) -> T:
        """Run ``coro`` on the loop and block until it returns."""
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result(timeout)

    def call(self, func: Callable[[], T]) -> T:
        """Run a synchronous callable on the loop thread."""

        async def _invoke() -> T:
            return func()

        return self.run(_invoke())


@dataclass
class Runtime:
    loop: EventLoopThread
    context: AppContext


@st.cache_resource
def get_runtime() -> Runtime:
    """Create the process-wide runtime once and load the recordings list.

    Uses Streamlit's ``cache_resource`` so the loop, the HTTP client, and
    any running capture survive script reruns.
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    loop = EventLoopThread()
    context = create_app_context(settings)
    loop.run(context.startup())
    return Runtime(loop=loop, context=context)
