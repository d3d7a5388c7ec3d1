"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (HTTP, the XML parser, the
local file system, the console) by implementing the interfaces defined in
the domain layer.
"""
