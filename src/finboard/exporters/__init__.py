"""Exporters package — convert reports to output formats."""
from finboard.exporters.markdown import format_currency, format_percent, render_markdown

__all__ = ["format_currency", "format_percent", "render_markdown"]
