"""Temporal filters driving phosphene brightness.

Filters:
    HabituationFilter: activation/trace update with one-frame adaptation lag

Example:
    >>> from phosphenesim.filters import HabituationFilter
    >>> filt = HabituationFilter(input_effect=1.0, intensity_decay=0.9)
    >>> activation, trace = filt(activation, trace, stimulation)
"""

from phosphenesim.filters.base import BaseFilter
from phosphenesim.filters.habituation import HabituationFilter

__all__ = [
    "BaseFilter",
    "HabituationFilter",
]
