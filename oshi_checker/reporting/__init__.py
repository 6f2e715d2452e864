"""
Reporting: terminal formatting for CLI output.

Modules
-------
formatters : format_ranking_table() + format_progress(): ASCII output.
"""
