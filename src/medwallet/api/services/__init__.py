"""API services."""

from .wallet import Wallet, build_wallet, get_wallet, init_wallet

__all__ = ["Wallet", "build_wallet", "get_wallet", "init_wallet"]
