"""Short code allocation and the bounded claim-retry loop.

Flow Diagram — claim_with_retry()
=================================
::
    ┌──────────────────┐
    │ preferred code?  │
    └────────┬─────────┘
    ┌────────┴────────┐
    │ YES             │ NO
    ▼                 ▼
┌──────────┐   ┌──────────────┐
│ claim    │   │ generate()   │◄────────┐
│ once     │   └──────┬───────┘         │
└────┬─────┘          ▼                 │
     │         ┌──────────────┐  Conflict and
     │         │ store.claim  │──attempts < max
     │         └──────┬───────┘
     ▼                ▼
 Ok / Conflict   Ok / AllocationExhausted

Key Behaviours
===============
- Codes come from ``nanoid`` over ``[A-Za-z0-9]``, which draws from
  ``os.urandom``; guessing a live code is as hard as brute-forcing the space.
- The allocator never checks format or uniqueness; the validation layer and
  the store's unique constraint do.
- A caller-supplied code is claimed exactly once. Its conflict goes back to
  the caller, because silently substituting another code would be wrong.
- Five straight collisions in a 62^8 space means something systemic is
  broken, so the loop stops and reports ``AllocationExhausted``.

Classes:
    CodeAllocator:  Proposes codes to claim.

Functions:
    claim_with_retry():  Allocator + claim with a fixed attempt bound.
"""

import logging
import string
from typing import Protocol

from nanoid import generate
from prometheus_client import Counter

from shortlink.outcomes import AllocationExhausted, Conflict, Ok
from shortlink.schemas import LinkRecord

__all__ = [
    "ALPHABET",
    "DEFAULT_CODE_LENGTH",
    "DEFAULT_MAX_ATTEMPTS",
    "CodeAllocator",
    "claim_with_retry",
]

logger = logging.getLogger("shortlink.allocator")

ALPHABET = string.ascii_letters + string.digits
DEFAULT_CODE_LENGTH = 8
DEFAULT_MAX_ATTEMPTS = 5

CODE_COLLISIONS_TOTAL = Counter(
    "shortlink_code_collisions_total",
    "Generated short codes that were already claimed",
)


class ClaimingStore(Protocol):
    async def claim(self, code: str, destination: str) -> Ok[LinkRecord] | Conflict: ...


class CodeAllocator:
    def __init__(self, length: int = DEFAULT_CODE_LENGTH) -> None:
        if not 6 <= length <= 8:
            raise ValueError(f"code length must be between 6 and 8, got {length!r}")
        self.length = length

    def generate(self) -> str:
        return generate(ALPHABET, self.length)

    def propose(self, preferred: str | None = None) -> str:
        if preferred:
            return preferred
        return self.generate()


async def claim_with_retry(
    store: ClaimingStore,
    allocator: CodeAllocator,
    destination: str,
    preferred: str | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> Ok[LinkRecord] | Conflict | AllocationExhausted:
    """Claim ``preferred`` once, or keep generating codes until one sticks.

    Args:
        store: Anything exposing an atomic ``claim``.
        allocator: Source of candidate codes.
        destination: Validated destination URL.
        preferred: Caller-chosen code, already format-checked.
        max_attempts: Upper bound on generated codes to try.

    Returns:
        ``Ok`` with the new link, ``Conflict`` if the preferred code is
        taken, or ``AllocationExhausted`` after ``max_attempts`` collisions.
    """
    if preferred:
        return await store.claim(allocator.propose(preferred), destination)

    for attempt in range(1, max_attempts + 1):
        code = allocator.propose()
        outcome = await store.claim(code, destination)
        if isinstance(outcome, Ok):
            return outcome
        CODE_COLLISIONS_TOTAL.inc()
        logger.warning(f"Generated code collided: {code} (attempt {attempt}/{max_attempts})")

    logger.error(f"Code allocation exhausted after {max_attempts} attempts")
    return AllocationExhausted(max_attempts)
