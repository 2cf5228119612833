"""
API module for device discovery and stream session control
"""

from .main_api import StreamAPI
from .session_routes import create_session_routes
from .system_routes import create_system_routes

__all__ = ['StreamAPI', 'create_session_routes', 'create_system_routes']
