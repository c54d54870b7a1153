"""
Rendering of benchmark results.
"""

from .text_report import format_results, make_table

__all__ = ['format_results', 'make_table']
