"""Code generation and the bounded claim-retry loop."""

import datetime
import string
from unittest.mock import patch

import pytest

from shortlink.allocator import ALPHABET, CodeAllocator, claim_with_retry
from shortlink.outcomes import AllocationExhausted, Conflict, Ok
from shortlink.schemas import LinkRecord
from shortlink.store import LinkStore
from shortlink.validation import is_valid_code


class ScriptedStore:
    """Store double that reports a conflict for the first ``conflicts`` claims."""

    def __init__(self, conflicts: int) -> None:
        self.conflicts = conflicts
        self.claimed: list[str] = []

    async def claim(self, code: str, destination: str) -> Ok[LinkRecord] | Conflict:
        self.claimed.append(code)
        if len(self.claimed) <= self.conflicts:
            return Conflict(code)
        return Ok(
            LinkRecord(
                code=code,
                destination=destination,
                click_count=0,
                created_at=datetime.datetime.now(datetime.timezone.utc),
            )
        )


def test_alphabet_is_alphanumeric() -> None:
    assert set(ALPHABET) == set(string.ascii_letters + string.digits)
    assert len(ALPHABET) == 62


def test_generate_default_length() -> None:
    assert len(CodeAllocator().generate()) == 8


def test_generate_only_alphanumeric() -> None:
    allocator = CodeAllocator()
    for _ in range(200):
        code = allocator.generate()
        assert all(c in ALPHABET for c in code)
        assert is_valid_code(code)


def test_generate_uniqueness() -> None:
    allocator = CodeAllocator()
    codes = {allocator.generate() for _ in range(1000)}
    # 62^8 possibilities; 1000 draws should never collide
    assert len(codes) == 1000


@pytest.mark.parametrize("length", [5, 9, 0])
def test_length_outside_code_format_rejected(length: int) -> None:
    with pytest.raises(ValueError):
        CodeAllocator(length)


def test_propose_returns_preferred_as_is() -> None:
    allocator = CodeAllocator()
    # No format check happens here; that is the validation layer's job.
    assert allocator.propose("bad!!") == "bad!!"
    assert allocator.propose("promo24") == "promo24"


def test_propose_without_preference_generates() -> None:
    allocator = CodeAllocator()
    assert len(allocator.propose()) == 8
    assert len(allocator.propose("")) == 8


@pytest.mark.asyncio
async def test_retry_succeeds_after_collisions() -> None:
    store = ScriptedStore(conflicts=2)
    outcome = await claim_with_retry(store, CodeAllocator(), "https://example.com")
    assert isinstance(outcome, Ok)
    assert len(store.claimed) == 3
    assert outcome.value.code == store.claimed[-1]


@pytest.mark.asyncio
async def test_retry_exhausts_after_five_attempts() -> None:
    store = ScriptedStore(conflicts=100)
    outcome = await claim_with_retry(store, CodeAllocator(), "https://example.com")
    assert outcome == AllocationExhausted(5)
    assert len(store.claimed) == 5


@pytest.mark.asyncio
async def test_retry_respects_custom_bound() -> None:
    store = ScriptedStore(conflicts=100)
    outcome = await claim_with_retry(store, CodeAllocator(), "https://example.com", max_attempts=2)
    assert outcome == AllocationExhausted(2)
    assert len(store.claimed) == 2


@pytest.mark.asyncio
async def test_preferred_code_is_claimed_once() -> None:
    store = ScriptedStore(conflicts=1)
    outcome = await claim_with_retry(store, CodeAllocator(), "https://example.com", preferred="promo24")
    assert outcome == Conflict("promo24")
    assert store.claimed == ["promo24"]


@pytest.mark.asyncio
async def test_generated_collision_against_real_store(store: LinkStore) -> None:
    await store.claim("AAAAAAAA", "https://example.com/existing")

    with patch("shortlink.allocator.generate", side_effect=["AAAAAAAA", "BBBBBBBB"]):
        outcome = await claim_with_retry(store, CodeAllocator(), "https://example.com/new")

    assert isinstance(outcome, Ok)
    assert outcome.value.code == "BBBBBBBB"


@pytest.mark.asyncio
async def test_generated_codes_claim_fresh_links(store: LinkStore, allocator: CodeAllocator) -> None:
    codes = set()
    for i in range(20):
        outcome = await claim_with_retry(store, allocator, f"https://example.com/{i}")
        assert isinstance(outcome, Ok)
        codes.add(outcome.value.code)
    assert len(codes) == 20
