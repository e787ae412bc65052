"""
Savings ledger for registered users.

Every balance change is a single conditional UPDATE on the account row,
committed together with its Transaction row (and audit entry for deposits
and withdrawals). Concurrent debits on the same account therefore cannot
overdraw it or lose an update.
"""

import os
import math
import time
import logging
from typing import List, Optional
from sqlalchemy import update, desc
from sqlalchemy.orm import Session

from models import Account, Transaction, TransactionKind, AuditLog, User
from errors import ValidationError, InsufficientFunds, NotFound

logger = logging.getLogger(__name__)

ORGANIZATION_NAME = "Arise and Shine Ministries International"
COLLECTION_FEE = float(os.getenv("COLLECTION_FEE", 2000))


def check_amount(amount) -> float:
    """Positive finite number, else ValidationError."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValidationError("Invalid amount")
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("Invalid amount")
    return float(amount)


def get_account(db: Session, user_id: int) -> Account:
    # Balances are changed with bulk UPDATEs, so always reload the row
    account = db.get(Account, user_id, populate_existing=True)
    if account is None:
        raise NotFound("Account not found")
    return account


def _credit(db: Session, user_id: int, amount: float):
    result = db.execute(
        update(Account)
        .where(Account.user_id == user_id)
        .values(balance=Account.balance + amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFound("Account not found")


def _debit(db: Session, user_id: int, amount: float):
    result = db.execute(
        update(Account)
        .where(Account.user_id == user_id, Account.balance >= amount)
        .values(balance=Account.balance - amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        if db.get(Account, user_id) is None:
            raise NotFound("Account not found")
        logger.warning(f"Rejected debit of {amount} for user {user_id}: insufficient balance")
        raise InsufficientFunds()


def _post(db: Session, user_id: int, kind: TransactionKind, amount: float, audit_details: Optional[str]) -> Transaction:
    """Apply the balance change and append the ledger rows in one commit."""
    try:
        if kind == TransactionKind.DEPOSIT:
            _credit(db, user_id, amount)
        else:
            _debit(db, user_id, amount)

        entry = Transaction(user_id=user_id, kind=kind, amount=amount)
        db.add(entry)
        if audit_details is not None:
            db.add(AuditLog(user_id=user_id, action=kind.value, details=audit_details))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(entry)
    logger.info(f"{kind.value} of {amount} posted for user {user_id} (transaction {entry.id})")
    return entry


def deposit(db: Session, user_id: int, amount) -> Transaction:
    amount = check_amount(amount)
    return _post(db, user_id, TransactionKind.DEPOSIT, amount, f"Deposited {amount:g}")


def withdraw(db: Session, user_id: int, amount) -> Transaction:
    amount = check_amount(amount)
    return _post(db, user_id, TransactionKind.WITHDRAWAL, amount, f"Withdrew {amount:g}")


def collect(db: Session, user_id: int, amount=None) -> Transaction:
    """Debit the organizational collection fee. Collections are not audited."""
    amount = check_amount(COLLECTION_FEE if amount is None else amount)
    return _post(db, user_id, TransactionKind.COLLECTION, amount, None)


def set_auto_pay(db: Session, user_id: int, enabled: bool) -> Account:
    account = get_account(db, user_id)
    account.auto_pay = bool(enabled)
    db.commit()
    db.refresh(account)
    return account


def list_transactions(db: Session, user_id: int) -> List[Transaction]:
    return db.query(Transaction).filter(
        Transaction.user_id == user_id
    ).order_by(desc(Transaction.created_at), desc(Transaction.id)).all()


def build_receipt(db: Session, transaction_id: int, owner_id: Optional[int] = None) -> dict:
    """Receipt for one transaction. With ``owner_id``, only that user's transactions are visible."""
    entry = db.get(Transaction, transaction_id)
    if entry is None or (owner_id is not None and entry.user_id != owner_id):
        raise NotFound("Transaction not found")

    user = db.get(User, entry.user_id) if entry.user_id is not None else None
    return {
        "receipt_id": f"RCP-{entry.id}-{int(time.time() * 1000)}",
        "transaction_id": entry.id,
        "user_name": user.name if user else "N/A",
        "user_email": user.email if user else "N/A",
        "type": entry.kind.value,
        "amount": entry.amount,
        "date": entry.created_at.isoformat() if entry.created_at else None,
        "organization": ORGANIZATION_NAME,
        "message": "Thank you for your support!"
    }
