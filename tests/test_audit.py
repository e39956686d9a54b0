from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError, InvalidRequestError

from gigsign.domain.audit import AuditEvent, ContractAuditEntry
from gigsign.repositories.contract import ContractRepository
from gigsign.services.audit import AuditContext, AuditTrail, compute_entry_hash, verify_chain


async def _contract(session, number="SS-2026-001"):
    return await ContractRepository(session, "tenant-a").create(
        contract_number=number,
        tier="Solo",
        annual_price=Decimal("1200.00"),
        contract_start_date=date(2026, 11, 1),
        signer_name="Astrid Berg",
        signer_email="astrid@nordicstrings.test",
    )


async def test_entries_chain_in_sequence(session):
    contract = await _contract(session)
    trail = AuditTrail(session)
    ctx = AuditContext(actor_email="admin@gigsign.test", ip_address="10.0.0.1", user_agent="pytest")

    first = await trail.record(contract, AuditEvent.CREATED, ctx, details={"contract_number": "SS-2026-001"})
    second = await trail.record(contract, AuditEvent.SENT, ctx)
    await session.commit()

    assert (first.sequence, second.sequence) == (1, 2)
    assert first.previous_hash is None
    assert second.previous_hash == first.entry_hash
    assert verify_chain(await trail.entries(contract.id))


async def test_chain_survives_a_round_trip_through_the_database(session_factory):
    async with session_factory() as s:
        contract = await _contract(s)
        trail = AuditTrail(s)
        for event in (AuditEvent.CREATED, AuditEvent.SENT, AuditEvent.VIEWED):
            await trail.record(contract, event, AuditContext(ip_address="10.0.0.2"), details={"n": 1})
        await s.commit()
        contract_id = contract.id

    async with session_factory() as s:
        entries = await AuditTrail(s).entries(contract_id)
        assert [e.event_type for e in entries] == ["created", "sent", "viewed"]
        assert verify_chain(entries)


async def test_tampered_entry_breaks_the_chain(session):
    contract = await _contract(session)
    trail = AuditTrail(session)
    for event in (AuditEvent.CREATED, AuditEvent.SENT, AuditEvent.SIGNED):
        await trail.record(contract, event, AuditContext())
    entries = await trail.entries(contract.id)

    entries[1].actor_email = "someone-else@example.test"
    assert not verify_chain(entries)

    entries[1].actor_email = None
    assert verify_chain(entries)
    assert not verify_chain([entries[0], entries[2]])


async def test_duplicate_sequence_is_rejected(session):
    contract = await _contract(session)
    trail = AuditTrail(session)
    first = await trail.record(contract, AuditEvent.CREATED, AuditContext())

    clash = ContractAuditEntry(
        contract_id=contract.id,
        sequence=first.sequence,
        event_type=AuditEvent.SENT.value,
        previous_hash=None,
        created_at=first.created_at,
    )
    clash.entry_hash = compute_entry_hash(clash)
    session.add(clash)
    with pytest.raises(IntegrityError):
        await session.flush()


def test_entry_hash_does_not_depend_on_the_timestamp_offset():
    instant = datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc)
    variants = [
        instant,
        instant.replace(tzinfo=None),
        instant.astimezone(timezone(timedelta(hours=2))),
        instant.astimezone(timezone(timedelta(hours=-5))),
    ]

    hashes = {
        compute_entry_hash(
            ContractAuditEntry(
                contract_id="c-1",
                sequence=1,
                event_type=AuditEvent.CREATED.value,
                previous_hash=None,
                created_at=created_at,
            )
        )
        for created_at in variants
    }
    assert len(hashes) == 1


async def test_audit_entries_are_never_lazy_loaded(session_factory):
    async with session_factory() as s:
        contract = await _contract(s)
        await AuditTrail(s).record(contract, AuditEvent.CREATED, AuditContext())
        await s.commit()
        contract_id = contract.id

    async with session_factory() as s:
        loaded = await ContractRepository(s, "tenant-a").get_by_id(contract_id)
        with pytest.raises(InvalidRequestError):
            loaded.audit_entries
        assert len(await AuditTrail(s).entries(contract_id)) == 1
