"""Target selection for multi-coin diversification."""

from .resolver import NamedListStrategy, Strategy, TopByVolumeStrategy, resolve_strategy

__all__ = ["Strategy", "NamedListStrategy", "TopByVolumeStrategy", "resolve_strategy"]
