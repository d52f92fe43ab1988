import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError
from sqlalchemy.sql.dml import Update

from app.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from app.models.user import User, UserRoleEnum
from app.models.transaction import Transaction, TransactionStatusEnum
from app.schemas.transaction_schema import TransactionCreate, TransactionUpdate
from app.services.transaction_service import TransactionService

COMPLETE = TransactionUpdate(status=TransactionStatusEnum.completed)


async def reload(session_factory, model, obj_id):
    async with session_factory() as session:
        return await session.get(model, obj_id)


@pytest.fixture
async def pending_payment(make_user, make_project, make_transaction):
    """Transaction 5: client 1 pays freelancer 2 250.00 on project 3."""
    await make_user("1", UserRoleEnum.client)
    await make_user("2", UserRoleEnum.freelancer)
    await make_project("3", client_id="1")
    await make_transaction("5", client_id="1", freelancer_id="2", project_id="3", amount="250.00")


async def test_completing_settles_both_users(db, session_factory, pending_payment):
    transaction = await TransactionService(db).update_transaction("5", COMPLETE)

    assert transaction.status == TransactionStatusEnum.completed
    client = await reload(session_factory, User, "1")
    freelancer = await reload(session_factory, User, "2")
    assert client.total_spent == Decimal("250.00")
    assert freelancer.earnings == Decimal("250.00")
    # accumulators are Decimal, not float
    assert isinstance(freelancer.earnings, Decimal)


async def test_completing_twice_settles_once(db, session_factory, pending_payment):
    service = TransactionService(db)

    await service.update_transaction("5", COMPLETE)
    await service.update_transaction("5", COMPLETE)

    client = await reload(session_factory, User, "1")
    freelancer = await reload(session_factory, User, "2")
    assert client.total_spent == Decimal("250.00")
    assert freelancer.earnings == Decimal("250.00")


async def test_stale_copies_cannot_double_settle(session_factory, pending_payment):
    async with session_factory() as first, session_factory() as second:
        # both workers have read the transaction while it was still pending
        assert (await first.get(Transaction, "5")).status == TransactionStatusEnum.pending
        assert (await second.get(Transaction, "5")).status == TransactionStatusEnum.pending

        await TransactionService(first).update_transaction("5", COMPLETE)
        await TransactionService(second).update_transaction("5", COMPLETE)

    freelancer = await reload(session_factory, User, "2")
    assert freelancer.earnings == Decimal("250.00")


async def test_guard_uses_stored_status(db, session_factory, make_user, make_project, make_transaction):
    await make_user("1", UserRoleEnum.client)
    await make_user("2", UserRoleEnum.freelancer)
    await make_project("3", client_id="1")
    await make_transaction(
        "6", client_id="1", freelancer_id="2", project_id="3",
        status=TransactionStatusEnum.completed,
    )
    # an "old_status" in the payload is not part of the update model and is ignored
    changes = TransactionUpdate.model_validate({"status": "completed", "old_status": "pending"})

    await TransactionService(db).update_transaction("6", changes)

    freelancer = await reload(session_factory, User, "2")
    assert freelancer.earnings == Decimal("0")


async def test_non_completing_update_does_not_settle(db, session_factory, pending_payment):
    changes = TransactionUpdate(status=TransactionStatusEnum.failed, payment_method="bank_transfer")

    transaction = await TransactionService(db).update_transaction("5", changes)

    assert transaction.status == TransactionStatusEnum.failed
    assert transaction.payment_method.value == "bank_transfer"
    freelancer = await reload(session_factory, User, "2")
    assert freelancer.earnings == Decimal("0")


async def test_settles_updated_amount(db, session_factory, pending_payment):
    changes = TransactionUpdate(status=TransactionStatusEnum.completed, amount=Decimal("300.50"))

    await TransactionService(db).update_transaction("5", changes)

    client = await reload(session_factory, User, "1")
    assert client.total_spent == Decimal("300.50")
    stored = await reload(session_factory, Transaction, "5")
    assert stored.amount == Decimal("300.50")


async def test_accumulators_add_to_existing_balances(
    db, session_factory, make_user, make_project, make_transaction
):
    await make_user("1", UserRoleEnum.client, total_spent="100.10")
    await make_user("2", UserRoleEnum.freelancer, earnings="0.20")
    await make_project("3", client_id="1")
    await make_transaction("5", client_id="1", freelancer_id="2", project_id="3", amount="0.10")

    await TransactionService(db).update_transaction("5", COMPLETE)

    client = await reload(session_factory, User, "1")
    freelancer = await reload(session_factory, User, "2")
    assert client.total_spent == Decimal("100.20")
    assert freelancer.earnings == Decimal("0.30")


async def test_unknown_transaction_is_not_found_and_touches_no_user(
    db, session_factory, pending_payment
):
    with pytest.raises(NotFoundError):
        await TransactionService(db).update_transaction("missing", COMPLETE)

    freelancer = await reload(session_factory, User, "2")
    client = await reload(session_factory, User, "1")
    assert freelancer.earnings == Decimal("0")
    assert client.total_spent == Decimal("0")


async def test_missing_client_rolls_back_completion(
    db, session_factory, make_user, make_project, make_transaction
):
    await make_user("2", UserRoleEnum.freelancer)
    await make_project("3", client_id="1")
    await make_transaction("5", client_id="1", freelancer_id="2", project_id="3")

    with pytest.raises(NotFoundError):
        await TransactionService(db).update_transaction("5", COMPLETE)

    stored = await reload(session_factory, Transaction, "5")
    assert stored.status == TransactionStatusEnum.pending


async def test_failed_client_debit_rolls_back_freelancer_credit(
    db, session_factory, pending_payment, monkeypatch
):
    real_execute = db.execute
    user_updates = []

    async def flaky_execute(statement, *args, **kwargs):
        if isinstance(statement, Update) and statement.table.name == "users":
            user_updates.append(statement)
            if len(user_updates) == 2:
                raise OperationalError("UPDATE users", {}, Exception("connection lost"))
        return await real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", flaky_execute)

    with pytest.raises(OperationalError):
        await TransactionService(db).update_transaction("5", COMPLETE)

    freelancer = await reload(session_factory, User, "2")
    assert freelancer.earnings == Decimal("0")
    stored = await reload(session_factory, Transaction, "5")
    assert stored.status == TransactionStatusEnum.pending


async def test_create_always_starts_pending(db, make_user, make_project):
    await make_user("1", UserRoleEnum.client)
    await make_user("2", UserRoleEnum.freelancer)
    await make_project("3", client_id="1")
    data = TransactionCreate(
        amount=Decimal("99.99"), payment_method="credit_card",
        client_id="1", freelancer_id="2", project_id="3",
    )

    transaction = await TransactionService(db).create_transaction(data)

    assert transaction.status == TransactionStatusEnum.pending
    assert transaction.amount == Decimal("99.99")


async def test_create_with_unknown_project_is_not_found(db, make_user):
    await make_user("1", UserRoleEnum.client)
    data = TransactionCreate(
        amount=Decimal("10"), payment_method="paypal",
        client_id="1", freelancer_id="2", project_id="nope",
    )

    with pytest.raises(NotFoundError):
        await TransactionService(db).create_transaction(data)


async def test_cannot_pay_yourself(db, make_user, make_project):
    await make_user("1", UserRoleEnum.client)
    await make_project("3", client_id="1")
    data = TransactionCreate(
        amount=Decimal("10"), payment_method="paypal",
        client_id="1", freelancer_id="1", project_id="3",
    )

    with pytest.raises(ValidationFailedError):
        await TransactionService(db).create_transaction(data)


async def test_completed_transaction_cannot_be_reopened(db, session_factory, pending_payment):
    service = TransactionService(db)
    await service.update_transaction("5", COMPLETE)

    with pytest.raises(ConflictError):
        await service.update_transaction("5", TransactionUpdate(status=TransactionStatusEnum.pending))
    # completing again after the refused reopen must not credit a second time
    await service.update_transaction("5", COMPLETE)

    freelancer = await reload(session_factory, User, "2")
    client = await reload(session_factory, User, "1")
    assert freelancer.earnings == Decimal("250.00")
    assert client.total_spent == Decimal("250.00")
    stored = await reload(session_factory, Transaction, "5")
    assert stored.status == TransactionStatusEnum.completed


async def test_completed_transaction_amount_is_frozen(db, session_factory, pending_payment):
    service = TransactionService(db)
    await service.update_transaction("5", COMPLETE)

    with pytest.raises(ConflictError):
        await service.update_transaction("5", TransactionUpdate(amount=Decimal("999.00")))
    with pytest.raises(ConflictError):
        await service.update_transaction("5", TransactionUpdate(status=TransactionStatusEnum.failed))

    stored = await reload(session_factory, Transaction, "5")
    assert stored.amount == Decimal("250.00")
    assert stored.status == TransactionStatusEnum.completed
    # resending the same values is allowed
    await service.update_transaction(
        "5", TransactionUpdate(status=TransactionStatusEnum.completed, amount=Decimal("250.00"))
    )


async def complete_in_own_session(session_factory, transaction_id):
    async with session_factory() as session:
        return await TransactionService(session).update_transaction(transaction_id, COMPLETE)


async def test_concurrent_completions_settle_once(session_factory, pending_payment):
    results = await asyncio.gather(
        complete_in_own_session(session_factory, "5"),
        complete_in_own_session(session_factory, "5"),
        return_exceptions=True,
    )

    assert all(isinstance(r, Transaction) for r in results), results
    freelancer = await reload(session_factory, User, "2")
    client = await reload(session_factory, User, "1")
    assert freelancer.earnings == Decimal("250.00")
    assert client.total_spent == Decimal("250.00")


async def test_guard_skips_settlement_when_row_completed_behind_our_back(
    db, session_factory, pending_payment
):
    service = TransactionService(db)
    transaction = await service.transaction_repo.get("5")
    assert transaction.status == TransactionStatusEnum.pending

    async with session_factory() as other:
        await other.execute(
            update(Transaction).where(Transaction.transaction_id == "5")
            .values(status=TransactionStatusEnum.completed)
        )
        await other.commit()

    settled = await service._complete_and_settle(transaction, transaction.amount)
    await db.rollback()

    assert settled is False
    freelancer = await reload(session_factory, User, "2")
    assert freelancer.earnings == Decimal("0")
