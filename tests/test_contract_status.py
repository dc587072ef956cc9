import pytest

from conftest import make_contract
from jobboard.core.exceptions import ArgumentError, InvalidOperationError, UnauthorizedAccessError
from jobboard.models.contract import ContractStatus
from jobboard.models.job import JobStatus
from jobboard.services.contract_service import (
    ALLOWED_TRANSITIONS, ContractService, check_transition, parse_contract_status
)
from jobboard.utils.notification_templates import NotificationType


@pytest.mark.parametrize("current,target", [
    (ContractStatus.pending, ContractStatus.active),
    (ContractStatus.pending, ContractStatus.cancelled),
    (ContractStatus.active, ContractStatus.completed),
    (ContractStatus.active, ContractStatus.cancelled),
])
def test_allowed_transitions(current, target):
    check_transition(current, target)


@pytest.mark.parametrize("current,target", [
    (ContractStatus.pending, ContractStatus.completed),
    (ContractStatus.active, ContractStatus.pending),
    (ContractStatus.completed, ContractStatus.active),
    (ContractStatus.completed, ContractStatus.cancelled),
    (ContractStatus.cancelled, ContractStatus.active),
    (ContractStatus.active, ContractStatus.active),
])
def test_forbidden_transitions(current, target):
    with pytest.raises(InvalidOperationError):
        check_transition(current, target)


def test_terminal_states_have_no_exits():
    assert ALLOWED_TRANSITIONS[ContractStatus.completed] == frozenset()
    assert ALLOWED_TRANSITIONS[ContractStatus.cancelled] == frozenset()


def test_parse_contract_status():
    assert parse_contract_status("Active") == ContractStatus.active
    assert parse_contract_status("completed") == ContractStatus.completed
    assert parse_contract_status(ContractStatus.pending) == ContractStatus.pending
    with pytest.raises(ArgumentError):
        parse_contract_status("Paused")


async def test_start_contract_sets_start_time_and_notifies_both_parties(db):
    contract, client, freelancer = await make_contract(db, status=ContractStatus.pending)
    service = ContractService(db)

    updated = await service.start_contract(contract.contract_id, "Kick-off on Monday", client)

    assert updated.status == ContractStatus.active
    assert updated.start_time is not None
    assert updated.job.status == JobStatus.in_progress
    recipients = {n.recipient_user_id for n in service.notifications.created}
    assert recipients == {client.user_id, freelancer.user_id}
    assert all(n.type == NotificationType.CONTRACT_STATUS_CHANGED.value for n in service.notifications.created)
    assert "Kick-off on Monday" in service.notifications.created[0].message


async def test_complete_contract_completes_job_and_asks_for_reviews(db):
    contract, client, freelancer = await make_contract(db)
    service = ContractService(db)

    updated = await service.update_contract_status(contract.contract_id, "Completed", None, client)

    assert updated.status == ContractStatus.completed
    assert updated.end_time is not None
    assert updated.job.status == JobStatus.completed
    types = [n.type for n in service.notifications.created]
    assert types.count(NotificationType.CONTRACT_STATUS_CHANGED.value) == 2
    assert types.count(NotificationType.REVIEW_REQUESTED.value) == 2


async def test_cancel_contract_cancels_job(db):
    contract, _, freelancer = await make_contract(db)

    updated = await ContractService(db).cancel_contract(contract.contract_id, "Client went silent", freelancer)

    assert updated.status == ContractStatus.cancelled
    assert updated.job.status == JobStatus.cancelled


async def test_closed_contract_cannot_move(db):
    contract, client, _ = await make_contract(db, status=ContractStatus.cancelled)

    with pytest.raises(InvalidOperationError):
        await ContractService(db).start_contract(contract.contract_id, None, client)


async def test_outsider_cannot_change_status(db):
    contract, _, _ = await make_contract(db)
    _, stranger, _ = await make_contract(db)

    with pytest.raises(UnauthorizedAccessError):
        await ContractService(db).complete_contract(contract.contract_id, None, stranger)


async def test_completion_handshake_approved(db):
    contract, client, freelancer = await make_contract(db)

    requested = await ContractService(db).request_completion(contract.contract_id, "All delivered", freelancer)
    assert requested.status == ContractStatus.active
    assert requested.completion_requested_by_user_id == freelancer.user_id

    with pytest.raises(InvalidOperationError):
        await ContractService(db).request_completion(contract.contract_id, None, client)
    with pytest.raises(UnauthorizedAccessError):
        await ContractService(db).respond_to_completion(contract.contract_id, True, None, freelancer)

    completed = await ContractService(db).respond_to_completion(contract.contract_id, True, "Thanks", client)
    assert completed.status == ContractStatus.completed
    assert completed.completion_requested_by_user_id is None


async def test_completion_handshake_declined(db):
    contract, client, freelancer = await make_contract(db)
    await ContractService(db).request_completion(contract.contract_id, None, freelancer)

    service = ContractService(db)
    declined = await service.respond_to_completion(contract.contract_id, False, "Footer is missing", client)

    assert declined.status == ContractStatus.active
    assert declined.completion_requested_by_user_id is None
    [notification] = service.notifications.created
    assert notification.recipient_user_id == freelancer.user_id
    assert notification.type == NotificationType.CONTRACT_COMPLETION_REJECTED.value


async def test_completion_request_can_be_withdrawn_by_requester_only(db):
    contract, client, freelancer = await make_contract(db)
    await ContractService(db).request_completion(contract.contract_id, None, freelancer)

    with pytest.raises(UnauthorizedAccessError):
        await ContractService(db).cancel_completion_request(contract.contract_id, None, client)

    withdrawn = await ContractService(db).cancel_completion_request(contract.contract_id, None, freelancer)
    assert withdrawn.completion_requested_by_user_id is None
    with pytest.raises(InvalidOperationError):
        await ContractService(db).respond_to_completion(contract.contract_id, True, None, client)


async def test_completion_needs_active_contract(db):
    contract, _, freelancer = await make_contract(db, status=ContractStatus.pending)

    with pytest.raises(InvalidOperationError):
        await ContractService(db).request_completion(contract.contract_id, None, freelancer)
