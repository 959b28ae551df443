"""
================================================================================
Page Objects
================================================================================

Page Object Model implementations for Wikipedia.

Each page class encapsulates:
    - Logical elements with fallback locator strategies
    - Known overlays, in dismissal priority order
    - Page-specific actions and verification methods

Author: Automation Team
License: MIT
================================================================================
"""

from .wikipedia_app_page import WikipediaAppPage
from .wikipedia_page import SearchResult, WikipediaPage

__all__ = [
    "SearchResult",
    "WikipediaAppPage",
    "WikipediaPage",
]
