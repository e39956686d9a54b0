"""Conditional writes decide which of two racing requests wins."""

from datetime import date
from decimal import Decimal

from gigsign.domain.contract import ContractStatus
from gigsign.repositories.contract import ContractRepository
from gigsign.services.tokens import hash_token

SENT = ContractStatus.SENT.value


async def _sent_contract(session, token_hash):
    repo = ContractRepository(session, "tenant-a")
    contract = await repo.create(
        contract_number="SS-2026-001",
        tier="Solo",
        annual_price=Decimal("1200.00"),
        contract_start_date=date(2026, 11, 1),
        signer_name="Astrid Berg",
        signer_email="astrid@nordicstrings.test",
        status=SENT,
        signing_token_hash=token_hash,
    )
    return repo, contract


async def test_only_the_first_matching_write_applies(session):
    digest = hash_token("a" * 64)
    repo, contract = await _sent_contract(session, digest)
    values = {"status": ContractStatus.SIGNED.value, "signing_token_hash": None}

    assert await repo.apply_transition(contract.id, from_statuses=[SENT], signing_token_hash=digest, values=values)
    assert not await repo.apply_transition(contract.id, from_statuses=[SENT], signing_token_hash=digest, values=values)

    reloaded = await repo.reload(contract.id)
    assert reloaded.status == ContractStatus.SIGNED.value
    assert reloaded.signing_token_hash is None


async def test_token_guard_rejects_a_replaced_token(session):
    repo, contract = await _sent_contract(session, hash_token("a" * 64))
    applied = await repo.apply_transition(
        contract.id,
        from_statuses=[SENT],
        signing_token_hash=hash_token("b" * 64),
        values={"status": ContractStatus.VIEWED.value},
    )
    assert not applied
    assert (await repo.reload(contract.id)).status == SENT


async def test_other_tenants_cannot_write(session):
    _, contract = await _sent_contract(session, hash_token("a" * 64))
    other = ContractRepository(session, "tenant-b")
    assert await other.get_by_id(contract.id) is None
    assert not await other.apply_transition(
        contract.id, from_statuses=[SENT], values={"status": ContractStatus.CANCELLED.value},
    )


async def test_contract_numbers_increment_per_year(session):
    repo, _ = await _sent_contract(session, None)
    assert await repo.next_contract_number("SS", 2026) == "SS-2026-002"
    assert await repo.next_contract_number("SS", 2027) == "SS-2027-001"
