"""FastAPI dependency injection for shared application state."""

from serialport_bridge.core.config import Settings
from serialport_bridge.driver.channel import LocalCommandChannel
from serialport_bridge.driver.registry import PortRegistry


class AppState:
    """Holds shared application state instances.

    Created during app startup and accessed via FastAPI dependencies.
    """

    def __init__(self) -> None:
        self.settings: Settings | None = None
        self.channel: LocalCommandChannel | None = None
        self.registry: PortRegistry | None = None


# Global app state singleton
app_state = AppState()


def get_channel() -> LocalCommandChannel:
    """Get the command channel instance."""
    assert app_state.channel is not None, "App not initialized"
    return app_state.channel


def get_registry() -> PortRegistry:
    """Get the port registry instance."""
    assert app_state.registry is not None, "App not initialized"
    return app_state.registry
