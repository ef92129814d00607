"""Backend resource clients."""
from .balances import BalanceApi
from .categories import CategoryApi
from .client import ApiClient
from .tokens import TokenApi
from .transactions import TransactionApi
from .users import UserApi

__all__ = [
    "ApiClient",
    "BalanceApi",
    "CategoryApi",
    "TokenApi",
    "TransactionApi",
    "UserApi",
]
