"""PR strategy generation for PressAudit."""

from .generator import FALLBACK_STRATEGY, StrategyGenerator, fallback_strategy

__all__ = ["FALLBACK_STRATEGY", "StrategyGenerator", "fallback_strategy"]
