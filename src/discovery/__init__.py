"""
Discovery module for stream device discovery
"""

from .manager import DeviceDiscovery
from .models import DiscoveryResult, DiscoveryError, NoLocalAddressError
from .network_discovery import NetworkDiscovery

__all__ = ['DeviceDiscovery', 'DiscoveryResult', 'DiscoveryError', 'NoLocalAddressError', 'NetworkDiscovery']
