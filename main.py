"""
Eco Pulse Server Entry Point

Wires the session store, rule engine, student tracker and metrics source
into the web server, then keeps the process alive until interrupted.
"""
import asyncio
import logging
import os

from ecopulse import CampusDataGenerator, EcoParameters, RuleEngine, SessionStore, StudentTracker, __version__
from interfaces import RealtimeServer
from web.app import WebServer

# Configure Logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=os.environ.get("LOG_LEVEL", "INFO").upper()
)
logger = logging.getLogger("Main")


class EcoPulseServer:
    """
    Main orchestrator (only coordinates components).
    Dependencies are injected so tests can build it without a network.
    """

    def __init__(self, params: EcoParameters, web_server: RealtimeServer):
        self._params = params
        self._web = web_server
        self._running = False

    def initialize(self) -> None:
        """Start all components."""
        logger.info(f"[SERVER] Eco Pulse server v{__version__} starting...")
        self._web.start()
        self._running = True
        logger.info("[READY] Accepting student and professor connections")

    async def run(self) -> None:
        """Block until stopped."""
        while self._running:
            await asyncio.sleep(1)

    def stop(self) -> None:
        """Stop all components."""
        logger.info("Stopping Eco Pulse server...")
        self._running = False
        self._web.stop()
        logger.info("Eco Pulse server stopped")


def build_server(params: EcoParameters = None, host: str = None, port: int = None) -> EcoPulseServer:
    """Create all components (dependencies are injected)."""
    params = params or EcoParameters.from_env()
    host = host or os.environ.get("HOST", "0.0.0.0")
    port = port or int(os.environ.get("PORT", "5000"))

    store = SessionStore()
    tracker = StudentTracker(store, params)
    rules = RuleEngine(store, params)
    metrics = CampusDataGenerator(seed=os.environ.get("SEED") or None)
    web = WebServer(tracker, rules, metrics, params, host=host, port=port)
    return EcoPulseServer(params, web)


async def serve() -> None:
    server = build_server()
    try:
        server.initialize()
        await server.run()
    finally:
        server.stop()


def main():
    """Application entry point."""
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
