"""
Chain module for the Solana Actions SDK.

Drives the multi-step interaction of chained Actions.
"""
from .controller import ActionChainController, ChainSession, ChainState, PendingTransaction

__all__ = ['ActionChainController', 'ChainSession', 'ChainState', 'PendingTransaction']
