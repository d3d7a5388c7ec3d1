"""nationscript: asynchronous client for the NationStates XML API.

Streams API responses through a tree of decode nodes and keeps outgoing
calls inside the server's published rate limits.
"""

__version__ = "0.3.0"
