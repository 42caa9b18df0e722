from duesbook.models.user import User
from duesbook.models.auth_session import AuthSession
from duesbook.models.customer import Customer
from duesbook.models.transaction import Transaction, TransactionType

__all__ = ["User", "AuthSession", "Customer", "Transaction", "TransactionType"]
