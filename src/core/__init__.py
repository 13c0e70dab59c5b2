"""Core package initialization"""

# Import classes only when needed to avoid circular imports
# Use direct imports in your code: from core.session import bootstrap_session

__all__ = [
    'bootstrap_session',
    'ReadySession',
    'UninitializedSession',
    'OrderResolver',
    'OrderBuilder',
    'OrderSubmitter',
]
