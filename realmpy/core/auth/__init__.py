"""Session acquisition: cached credential, password login, email login."""
from .tiers import Tier, TierResult, AcquisitionState
from .acquirer import SessionAcquirer

__all__ = [
    'Tier',
    'TierResult',
    'AcquisitionState',
    'SessionAcquirer',
]
