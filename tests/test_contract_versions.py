from decimal import Decimal

import pytest
from sqlalchemy import update

from conftest import make_contract
from jobboard.core.exceptions import NotFoundError
from jobboard.models.contract_version import ContractVersion
from jobboard.repositories.contract_version_repo import ContractVersionRepository


def new_version(contract, number, amount="600", current=False):
    return ContractVersion(
        contract_id=contract.contract_id,
        version_number=number,
        title=f"Terms v{number}",
        description="Updated scope",
        payment_amount=Decimal(amount),
        payment_type="Fixed",
        created_by_user_id=contract.client_id,
        created_by_role="Client",
        change_reason="Scope change",
        is_current_version=current,
        is_active=True,
        attachments=[],
    )


async def current_flags(db, contract_id):
    repo = ContractVersionRepository(db)
    versions = await repo.get_version_history(contract_id)
    return {v.version_number: v.is_current_version for v in versions}


async def test_initial_version_is_current(db):
    contract, _, _ = await make_contract(db)
    repo = ContractVersionRepository(db)

    current = await repo.get_current_version(contract.contract_id)
    assert current is not None
    assert current.version_number == 1
    assert current.payment_amount == Decimal("500")
    assert current.created_by_role == "System"
    assert await repo.get_next_version_number(contract.contract_id) == 2


async def test_create_new_version_replaces_current(db):
    contract, _, _ = await make_contract(db)
    repo = ContractVersionRepository(db)

    await repo.create_new_version(new_version(contract, 2))
    await db.commit()

    current = await repo.get_current_version(contract.contract_id)
    assert current.version_number == 2
    assert await current_flags(db, contract.contract_id) == {2: True, 1: False}


async def test_set_current_version_keeps_exactly_one_current(db):
    contract, _, _ = await make_contract(db)
    repo = ContractVersionRepository(db)
    await repo.create_version(new_version(contract, 2))
    await repo.create_version(new_version(contract, 3))

    await repo.set_current_version(contract.contract_id, (await repo.get_version_by_number(contract.contract_id, 3)).version_id)
    await repo.set_current_version(contract.contract_id, (await repo.get_version_by_number(contract.contract_id, 2)).version_id)
    await db.commit()

    flags = await current_flags(db, contract.contract_id)
    assert flags == {3: False, 2: True, 1: False}
    assert list(flags.values()).count(True) == 1


async def test_set_current_version_rejects_foreign_or_inactive_version(db):
    contract, _, _ = await make_contract(db)
    other, _, _ = await make_contract(db)
    repo = ContractVersionRepository(db)
    foreign = await repo.get_current_version(other.contract_id)

    with pytest.raises(NotFoundError):
        await repo.set_current_version(contract.contract_id, foreign.version_id)

    retired = await repo.create_version(new_version(contract, 2))
    await repo.deactivate_version(retired)
    with pytest.raises(NotFoundError):
        await repo.set_current_version(contract.contract_id, retired.version_id)

    with pytest.raises(NotFoundError):
        await repo.set_current_version(contract.contract_id, 999999)


async def test_version_numbers_are_not_reused_after_deactivation(db):
    contract, _, _ = await make_contract(db)
    repo = ContractVersionRepository(db)

    retired = await repo.create_version(new_version(contract, 2))
    await repo.deactivate_version(retired)

    assert await repo.get_next_version_number(contract.contract_id) == 3
    assert await repo.count_versions(contract.contract_id) == 1


async def test_history_is_newest_first(db):
    contract, _, _ = await make_contract(db)
    repo = ContractVersionRepository(db)
    await repo.create_new_version(new_version(contract, 2))
    await repo.create_new_version(new_version(contract, 3))

    history = await repo.get_version_history(contract.contract_id)
    assert [v.version_number for v in history] == [3, 2, 1]


async def test_repair_restores_single_current_version(db):
    contract, _, _ = await make_contract(db)
    healthy, _, _ = await make_contract(db)
    repo = ContractVersionRepository(db)
    await repo.create_version(new_version(contract, 2))

    # Legacy data: no current flag at all
    await db.execute(
        update(ContractVersion)
        .where(ContractVersion.contract_id == contract.contract_id)
        .values(is_current_version=False)
    )
    await db.commit()
    assert await repo.find_contracts_without_current_version() == [contract.contract_id]

    repaired = await repo.repair_current_versions()
    await db.commit()

    assert repaired == [contract.contract_id]
    assert (await repo.get_current_version(contract.contract_id)).version_number == 2
    assert (await repo.get_current_version(healthy.contract_id)).version_number == 1
    assert await repo.find_contracts_without_current_version() == []


async def test_repair_fixes_multiple_current_flags(db):
    contract, _, _ = await make_contract(db)
    repo = ContractVersionRepository(db)
    await repo.create_version(new_version(contract, 2, current=True))
    await db.commit()

    assert await repo.find_contracts_without_current_version() == [contract.contract_id]
    await repo.repair_current_versions()
    await db.commit()

    assert await current_flags(db, contract.contract_id) == {2: True, 1: False}
