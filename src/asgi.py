"""
ASGI entry point for uvicorn
This module exposes the FastAPI app for use with uvicorn command line
"""

import logging
import os
from pathlib import Path

from config_loader import load_config, setup_logging
from discovery.manager import DeviceDiscovery
from session.stream_session import StreamSession
from api.main_api import StreamAPI

# Ensure logs directory exists
Path("logs").mkdir(exist_ok=True)

# Load configuration
config = load_config(os.environ.get('CONFIG_FILE', 'config/config.yaml'))
setup_logging(config)

logger = logging.getLogger(__name__)

logger.info("Initializing application components...")

discovery = DeviceDiscovery(config['discovery'])
session = StreamSession(config['session'])

# Create API (which contains the FastAPI app)
api = StreamAPI(discovery, session, config)

# Expose the FastAPI app for uvicorn
app = api.app

@app.on_event("shutdown")
async def shutdown_event():
    """Stop any running download on shutdown"""
    logger.info("Shutting down application...")
    await session.shutdown()
    logger.info("Application shut down complete")

logger.info("ASGI app ready for uvicorn")
