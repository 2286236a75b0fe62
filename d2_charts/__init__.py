"""
D2 Charts - Chart Transform Engine

Maps tabular report results to renderer-agnostic chart options.
"""

from .transform import chart_type_display, coerce_number, transform

__all__ = ["transform", "coerce_number", "chart_type_display"]
