"""
Installation strategies, one per manifest tag.
"""

from barbs_setup.strategies.api import InstallOutcome, InstallStrategy
from barbs_setup.strategies.builtin import builtin_strategies
from barbs_setup.strategies.factory import StrategyFactory

__all__ = ["InstallOutcome", "InstallStrategy", "StrategyFactory", "builtin_strategies"]
