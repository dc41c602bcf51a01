"""Results of the individual login tiers."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from nio import AsyncClient

from ..session.models import Credential, CredentialStore


class Tier(Enum):
    """Login tiers, in the order they are attempted."""
    CACHED = 'cached'
    PASSWORD = 'password'
    EMAIL = 'email'


@dataclass
class TierResult:
    """Outcome of one tier: a client on success, the error otherwise."""
    tier: Tier
    client: Optional[AsyncClient] = None
    credential: Optional[Credential] = None
    error: Optional[Exception] = None
    
    @property
    def ok(self) -> bool:
        return self.client is not None
    
    @classmethod
    def success(cls, tier: Tier, client: AsyncClient, credential: Credential) -> 'TierResult':
        return cls(tier=tier, client=client, credential=credential)
    
    @classmethod
    def failure(cls, tier: Tier, error: Exception) -> 'TierResult':
        return cls(tier=tier, error=error)


@dataclass
class AcquisitionState:
    """Inputs shared by the tiers of a single acquisition."""
    server: str
    username: str
    password: str = field(repr=False)
    store: CredentialStore
    # Device of an unusable cached credential, reused by password login
    device_id: Optional[str] = None
