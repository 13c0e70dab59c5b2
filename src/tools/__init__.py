"""Tools package initialization"""

# Use direct imports in your code: from tools.trading_tools import TradingTools

__all__ = [
    'TradingTools',
    'ToolResult',
]
