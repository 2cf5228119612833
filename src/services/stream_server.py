"""
Stream Server - Main orchestrator for discovery, stream session and local API
"""

import logging
from typing import Dict, Optional
import uvicorn

# Local imports
from config_loader import load_config, setup_logging
from discovery.manager import DeviceDiscovery
from session.stream_session import StreamSession
from session.commands import build_stream_url
from api.main_api import StreamAPI

logger = logging.getLogger(__name__)

class StreamServer:
    """Main server wiring the discovery scanner and the single stream session to the HTTP API"""

    def __init__(self, config_path: str = "config/config.yaml", config: Optional[Dict] = None):
        self.config = config if config is not None else load_config(config_path)
        setup_logging(self.config)

        self.discovery = DeviceDiscovery(self.config['discovery'])
        self.session = StreamSession(self.config['session'])
        self.api = StreamAPI(self.discovery, self.session, self.config)

        self.running = False
        self._server: Optional[uvicorn.Server] = None

    async def start(self):
        """Log the startup configuration and serve the API until stopped"""
        logger.info("Starting Stream Camera Local Server...")
        try:
            discovery_cfg = self.config['discovery']
            session_cfg = self.config['session']
            low, high = discovery_cfg['host_range']
            logger.info(f"Discovery range: hosts {low}-{high}, {discovery_cfg['probe_timeout_ms']}ms per probe, "
                        f"parallel_probes={discovery_cfg['parallel_probes']}")
            logger.info(f"Downloads go to {self.session.download_directory} via {session_cfg['ffmpeg_path']}")

            self.running = True
            await self._start_api_server()

        except Exception as e:
            logger.error(f"Server startup failed: {e}")
            await self.stop()
            raise

    async def stop(self):
        """Stop the API and any running download"""
        if not self.running and self._server is None:
            return
        logger.info("Stopping server...")
        self.running = False

        if self._server is not None:
            self._server.should_exit = True

        await self.session.shutdown()
        logger.info("Server stopped")

    async def discover_stream_url(self) -> Optional[str]:
        """Run one scan with configured defaults and return the device's stream URL"""
        result = await self.discovery.scan()
        if not result.found:
            return None
        return build_stream_url(result.address, self.config['session']['stream_path'])

    async def _start_api_server(self):
        config = uvicorn.Config(
            self.api.app,
            host=self.config['api']['host'],
            port=self.config['api']['port'],
            log_level="info",
            access_log=False  # We handle our own logging
        )

        self._server = uvicorn.Server(config)

        logger.info(f"Starting API server on {self.config['api']['host']}:{self.config['api']['port']}")
        logger.info(f"API documentation: http://localhost:{self.config['api']['port']}/docs")

        await self._server.serve()
