"""Domain Layer: errors, value objects, events and interfaces (ports)."""
