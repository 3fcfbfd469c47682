from .accounts import AccountsService

__all__ = ["AccountsService"]
