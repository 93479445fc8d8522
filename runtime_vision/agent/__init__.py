"""
Capture agent for Runtime Vision.

Quick start:
    from runtime_vision import agent

    await agent.init(session="checkout-flow", batchSize=20)
    agent.capture("cart.updated", {"items": 3})
    ...
    await agent.shutdown()
"""
from typing import Any, Mapping

from .agent import TelemetryAgent
from .config import AgentConfig
from .install import install, installed_agent, uninstall

__all__ = [
    "AgentConfig",
    "TelemetryAgent",
    "capture",
    "init",
    "install",
    "installed_agent",
    "shutdown",
    "uninstall",
]


async def init(**options: Any) -> TelemetryAgent:
    """
    Create, start and install the process-wide agent.

    A second call returns the agent already installed.
    """
    existing = installed_agent()
    if existing is not None:
        install(existing)  # logs the repeated initialization
        return existing

    agent = TelemetryAgent(AgentConfig.model_validate(options))
    await agent.start()
    install(agent)
    return agent


def capture(type: str, data: Mapping[str, Any] | None = None):
    """Capture a custom event on the installed agent; no-op before ``init``."""
    agent = installed_agent()
    if agent is None:
        return None
    return agent.capture(type, data)


async def shutdown() -> None:
    """Uninstall the process-wide agent and deliver what it still holds."""
    agent = installed_agent()
    if agent is None:
        return
    uninstall()
    await agent.close()
