"""Screens of the history viewer."""

from clusage.ui.views.base import LoadingView
from clusage.ui.views.calendar import CalendarView
from clusage.ui.views.compare import CompareView
from clusage.ui.views.context import ViewContext
from clusage.ui.views.detail import DetailView
from clusage.ui.views.histogram import HistogramView

__all__ = [
    "CalendarView",
    "CompareView",
    "DetailView",
    "HistogramView",
    "LoadingView",
    "ViewContext",
]
