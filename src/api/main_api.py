"""
Main FastAPI application setup

Local HTTP API for the Stream Camera Local Server
Exposes device discovery, stream probing, downloads and log polling to UI clients
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from typing import Dict
import logging

from .system_routes import create_system_routes
from .session_routes import create_session_routes

logger = logging.getLogger(__name__)


class StreamAPI:
    """Local HTTP API wrapping the discovery scanner and the stream session"""

    def __init__(self, discovery, session, config: Dict):
        self.discovery = discovery
        self.session = session
        self.config = config
        self.app = FastAPI(
            title="Stream Camera Local Server",
            description="Local API for device discovery, stream probing and downloads",
            version="1.0.0"
        )
        self._setup_middleware()
        self._setup_routes()

    def _setup_middleware(self):
        origins = self.config.get('api', {}).get('cors_origins', ['*'])
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["*"],
            allow_headers=["*"]
        )

    def _setup_routes(self):
        """Setup FastAPI routes using modular approach"""
        system_router = create_system_routes(self.discovery, self.session, self.config)
        session_router = create_session_routes(self.session)

        self.app.include_router(system_router)
        self.app.include_router(session_router)
