"""
Refresh scheduling and explicit application state.
"""
from .refresh import RefreshScheduler, RenderTarget
from .state import AppState, RefreshSnapshot

__all__ = ["AppState", "RefreshScheduler", "RefreshSnapshot", "RenderTarget"]
