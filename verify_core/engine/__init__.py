"""
Verification Engine
===================
Issuance, verification and the verification state machine.
"""

from .models import VerificationState, IssueResult, VerificationResult, AttemptStats
from .engine import VerificationEngine, SideEffect

__all__ = [
    # Models
    "VerificationState",
    "IssueResult",
    "VerificationResult",
    "AttemptStats",
    # Engine
    "VerificationEngine",
    "SideEffect",
]
