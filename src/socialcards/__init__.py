"""Social Cards - on-demand Open Graph card images rendered from URL parameters."""

__version__ = "0.1.0"

from socialcards.core.config import SocialCardsConfig
from socialcards.core.params import ParamSet

__all__ = [
    "ParamSet",
    "SocialCardsConfig",
]
