"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (the image API, the console,
configuration files) by implementing the interfaces defined in the domain layer.
"""
