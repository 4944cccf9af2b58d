"""Domain Layer: value objects, result types, interfaces and events."""
