"""
Discovery data structures and models
"""

from typing import List, Optional
from dataclasses import dataclass, field


class DiscoveryError(Exception):
    """Base class for discovery failures"""


class NoLocalAddressError(DiscoveryError):
    """Local IPv4 address could not be determined, so no subnet prefix exists"""


@dataclass(frozen=True)
class DiscoveryResult:
    """Outcome of one subnet scan: Found(address) or NotFound"""
    address: Optional[str]
    hosts_probed: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def found(self) -> bool:
        return self.address is not None

    @classmethod
    def not_found(cls, hosts_probed: List[str], duration_seconds: float = 0.0) -> "DiscoveryResult":
        return cls(None, hosts_probed, duration_seconds)
