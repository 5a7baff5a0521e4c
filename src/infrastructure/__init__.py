"""Infrastructure Layer.

Adapters implementing the domain ports over concrete I/O (HTTP, files).
"""
