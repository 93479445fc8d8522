"""
Global installation of an agent's instrumentation.

Replaces ``sys.excepthook``, ``threading.excepthook`` and the running loop's
exception handler, and attaches a capture handler to the root logger. Done at
most once per process; ``uninstall`` restores the originals.
"""
import asyncio
import logging
import sys
import threading
from dataclasses import dataclass
from typing import Any, Callable

import structlog

from .agent import TelemetryAgent

log = structlog.get_logger("runtime_vision.agent")


@dataclass
class _Installation:
    agent: TelemetryAgent
    excepthook: Callable | None = None
    threading_excepthook: Callable | None = None
    loop: asyncio.AbstractEventLoop | None = None
    loop_handler: Any = None
    log_handler: logging.Handler | None = None


_installed: _Installation | None = None


def installed_agent() -> TelemetryAgent | None:
    return _installed.agent if _installed else None


def install(agent: TelemetryAgent, loop: asyncio.AbstractEventLoop | None = None) -> bool:
    """
    Install the agent's error and console capture process-wide.

    Network capture stays opt-in per client via ``agent.transport()`` and
    ``agent.async_transport()``.

    Returns:
        True if installed, False if an agent was already installed
    """
    global _installed
    if _installed is not None:
        log.warning("agent.already_installed", session=_installed.agent.config.session)
        return False

    state = _Installation(agent=agent)
    if agent.config.capture_errors:
        state.excepthook = sys.excepthook
        sys.excepthook = agent.excepthook(sys.excepthook)
        state.threading_excepthook = threading.excepthook
        threading.excepthook = agent.threading_excepthook(threading.excepthook)

        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
        if loop is not None:
            state.loop = loop
            state.loop_handler = loop.get_exception_handler()
            loop.set_exception_handler(agent.exception_handler(state.loop_handler))

    if agent.config.capture_console:
        state.log_handler = agent.log_handler()
        logging.getLogger().addHandler(state.log_handler)

    _installed = state
    log.info(
        "agent.installed",
        session=agent.config.session,
        errors=agent.config.capture_errors,
        console=agent.config.capture_console,
    )
    return True


def uninstall() -> None:
    """Restore every hook replaced by ``install``."""
    global _installed
    state = _installed
    if state is None:
        return

    if state.excepthook is not None:
        sys.excepthook = state.excepthook
    if state.threading_excepthook is not None:
        threading.excepthook = state.threading_excepthook
    if state.loop is not None and not state.loop.is_closed():
        state.loop.set_exception_handler(state.loop_handler)
    if state.log_handler is not None:
        logging.getLogger().removeHandler(state.log_handler)

    _installed = None
    log.info("agent.uninstalled", session=state.agent.config.session)
