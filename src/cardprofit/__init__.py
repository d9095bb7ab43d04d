"""CardProfit: card benefit profitability analysis."""

__version__ = "1.0.0"
