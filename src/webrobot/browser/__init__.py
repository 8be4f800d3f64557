"""Browser collaborator layer.

Defines the locator types and driver/element protocols the engine is written
against (``driver``), a Playwright implementation of them
(``playwright_driver``), and the HTML snapshot truncator used in error
messages (``html_truncate``).
"""

from webrobot.browser.driver import By, Keys, Locator, Scoped, Target
from webrobot.browser.html_truncate import truncate_html

__all__ = ["By", "Keys", "Locator", "Scoped", "Target", "truncate_html"]
