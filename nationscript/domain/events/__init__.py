"""Domain Event definitions.

Represents significant occurrences around API calls and admission control.
Events are currently only logged.
"""
