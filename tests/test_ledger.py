import threading

import pytest

import ledger
from database import SessionLocal
from errors import InsufficientFunds, ValidationError, NotFound
from models import Transaction, TransactionKind, AuditLog


def _transactions(db, user_id):
    return db.query(Transaction).filter(Transaction.user_id == user_id).all()


def test_new_account_starts_empty(db, member):
    account = ledger.get_account(db, member.id)
    assert account.balance == 0
    assert account.auto_pay is False


def test_deposit_increases_balance_and_records_everything(db, member):
    entry = ledger.deposit(db, member.id, 100)

    assert ledger.get_account(db, member.id).balance == 100
    assert entry.kind == TransactionKind.DEPOSIT
    assert entry.amount == 100
    assert len(_transactions(db, member.id)) == 1

    logs = db.query(AuditLog).filter(AuditLog.user_id == member.id).all()
    assert [log.action for log in logs] == ["deposit"]
    assert logs[0].details == "Deposited 100"


def test_withdraw_more_than_balance_is_rejected(db, member):
    ledger.deposit(db, member.id, 100)

    with pytest.raises(InsufficientFunds):
        ledger.withdraw(db, member.id, 150)

    assert ledger.get_account(db, member.id).balance == 100
    assert len(_transactions(db, member.id)) == 1


def test_deposit_then_withdraw_restores_balance(db, member):
    ledger.deposit(db, member.id, 40)
    before = ledger.get_account(db, member.id).balance

    ledger.deposit(db, member.id, 75.5)
    ledger.withdraw(db, member.id, 75.5)

    assert ledger.get_account(db, member.id).balance == before
    kinds = [entry.kind for entry in _transactions(db, member.id)]
    assert kinds.count(TransactionKind.DEPOSIT) == 2
    assert kinds.count(TransactionKind.WITHDRAWAL) == 1


def test_withdraw_entire_balance_leaves_zero(db, member):
    ledger.deposit(db, member.id, 60)
    ledger.withdraw(db, member.id, 60)

    assert ledger.get_account(db, member.id).balance == 0
    with pytest.raises(InsufficientFunds):
        ledger.withdraw(db, member.id, 0.01)


def test_collection_uses_default_fee_and_is_not_audited(db, member):
    ledger.deposit(db, member.id, 5000)

    entry = ledger.collect(db, member.id)

    assert entry.kind == TransactionKind.COLLECTION
    assert entry.amount == ledger.COLLECTION_FEE
    assert ledger.get_account(db, member.id).balance == 5000 - ledger.COLLECTION_FEE
    actions = [log.action for log in db.query(AuditLog).all()]
    assert actions == ["deposit"]


def test_collection_requires_sufficient_balance(db, member):
    ledger.deposit(db, member.id, 10)

    with pytest.raises(InsufficientFunds):
        ledger.collect(db, member.id, 20)

    assert ledger.get_account(db, member.id).balance == 10


@pytest.mark.parametrize("amount", [0, -5, "100", None, True, float("inf"), float("-inf"), float("nan")])
def test_invalid_amounts_are_rejected_before_any_write(db, member, amount):
    with pytest.raises(ValidationError):
        ledger.deposit(db, member.id, amount)

    assert _transactions(db, member.id) == []


def test_operations_on_missing_account(db):
    with pytest.raises(NotFound):
        ledger.deposit(db, 999, 10)
    with pytest.raises(NotFound):
        ledger.withdraw(db, 999, 10)

    assert db.query(Transaction).count() == 0


def test_auto_pay_toggle_does_not_touch_balance(db, member):
    ledger.deposit(db, member.id, 30)

    account = ledger.set_auto_pay(db, member.id, True)
    assert account.auto_pay is True
    assert account.balance == 30

    assert ledger.set_auto_pay(db, member.id, False).auto_pay is False


def test_receipt_for_transaction(db, member):
    entry = ledger.deposit(db, member.id, 250)

    receipt = ledger.build_receipt(db, entry.id)

    assert receipt["receipt_id"].startswith(f"RCP-{entry.id}-")
    assert receipt["user_name"] == "Ann"
    assert receipt["user_email"] == "a@x.com"
    assert receipt["type"] == "deposit"
    assert receipt["amount"] == 250
    assert receipt["organization"] == ledger.ORGANIZATION_NAME


def test_receipt_hidden_from_other_users(db, member):
    entry = ledger.deposit(db, member.id, 250)

    with pytest.raises(NotFound):
        ledger.build_receipt(db, entry.id, owner_id=member.id + 100)


def test_transaction_history_is_newest_first(db, member):
    ledger.deposit(db, member.id, 10)
    ledger.deposit(db, member.id, 20)
    ledger.withdraw(db, member.id, 5)

    history = ledger.list_transactions(db, member.id)
    assert [entry.amount for entry in history] == [5, 20, 10]


@pytest.mark.parametrize("amount", [float("inf"), float("nan")])
def test_non_finite_collection_fee_is_rejected(db, member, amount):
    ledger.deposit(db, member.id, 100)

    with pytest.raises(ValidationError):
        ledger.collect(db, member.id, amount)

    assert ledger.get_account(db, member.id).balance == 100


@pytest.mark.parametrize("body", ['{"amount": Infinity}', '{"amount": NaN}', '{"amount": -Infinity}'])
def test_non_finite_deposit_over_http(client, db, member, login, body):
    headers = {**login("a@x.com", "pw1234"), "Content-Type": "application/json"}

    response = client.post("/api/account/deposit", content=body, headers=headers)

    assert response.status_code == 400
    assert "error" in response.json()
    account = client.get("/api/account", headers=headers)
    assert account.status_code == 200
    assert account.json()["account"]["balance"] == 0
    assert _transactions(db, member.id) == []


def test_concurrent_full_withdrawals_cannot_overdraw(db, member):
    ledger.deposit(db, member.id, 100)
    barrier = threading.Barrier(2)
    outcomes = []

    def withdraw_everything():
        session = SessionLocal()
        try:
            barrier.wait(timeout=5)
            ledger.withdraw(session, member.id, 100)
            outcomes.append("ok")
        except InsufficientFunds:
            outcomes.append("insufficient")
        finally:
            session.close()

    workers = [threading.Thread(target=withdraw_everything) for _ in range(2)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(timeout=30)

    assert sorted(outcomes) == ["insufficient", "ok"]
    assert ledger.get_account(db, member.id).balance == 0
    withdrawals = db.query(Transaction).filter(
        Transaction.user_id == member.id, Transaction.kind == TransactionKind.WITHDRAWAL
    ).count()
    assert withdrawals == 1
