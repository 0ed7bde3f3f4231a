from .pos_cash_client import PosCashClient

__all__ = ["PosCashClient"]
