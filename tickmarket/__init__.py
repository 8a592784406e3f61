# tickmarket/__init__.py
"""
Tick Market Simulator: prestige-tiered clearing at a fixed price.

Export the primary types and entry points for convenience.
"""
from .models import Side, Order, TradeResult, GOODS, good_name
from .errors import InvariantViolation, OrderNotFound
from .core import OrderBook
from .clearing import ClearingEngine, Tier, build_tiers, distribute
from .market import Market, FixedPriceMarket
from .agents import EcoEntity, StaticProductionTarget, StaticConsumptionTarget

__all__ = [
    "Side",
    "Order",
    "TradeResult",
    "GOODS",
    "good_name",
    "InvariantViolation",
    "OrderNotFound",
    "OrderBook",
    "ClearingEngine",
    "Tier",
    "build_tiers",
    "distribute",
    "Market",
    "FixedPriceMarket",
    "EcoEntity",
    "StaticProductionTarget",
    "StaticConsumptionTarget",
]

__version__ = "0.1.0"
