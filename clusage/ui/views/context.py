"""
Everything a view needs from outside the component tree.

Views never read module-level state: the history reader, the translator, the
settings and the clock are handed to them through one :class:`ViewContext`.
"""

#region Imports
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable

from clusage.config.user_config import Settings
from clusage.i18n import Translator, resolve_locale
from clusage.models.pricing import CostBreakdown, convert_to_krw, format_cost
from clusage.storage.reader import HistoryReader
from clusage.ui.renderer import BoxStyle, get_box_style
#endregion


#region View Context


@dataclass
class ViewContext:
    """
    Collaborators shared by every screen of one viewer run.

    Attributes:
        reader: Source of daily usage files
        translator: Message lookup for the active locale
        settings: Display preferences
        clock: Returns the current local time
    """

    reader: HistoryReader
    translator: Translator
    settings: Settings
    clock: Callable[[], datetime] = field(default=datetime.now)

    @classmethod
    def default(cls) -> "ViewContext":
        """Context backed by the user's data directory and settings file."""
        settings = Settings()
        return cls(
            reader=HistoryReader(),
            translator=Translator(resolve_locale(settings)),
            settings=settings,
        )

    def t(self, key: str, **params: Any) -> str:
        return self.translator.t(key, **params)

    def now(self) -> datetime:
        return self.clock()

    def today(self) -> date:
        return self.clock().date()

    @property
    def box_style(self) -> BoxStyle:
        return get_box_style(self.settings.get_setting("boxStyle"))

    def format_money(self, usd: float) -> str:
        """Format a USD amount in the configured display currency."""
        currency = self.settings.get_setting("currency")
        krw = None
        if currency == "KRW":
            krw = convert_to_krw(usd, self.settings.get_setting("exchangeRate"))
        return format_cost(CostBreakdown(total_cost_usd=usd, total_cost_krw=krw), currency, include_usd=False)
#endregion
