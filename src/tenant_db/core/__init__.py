"""Core infrastructure: configuration-free building blocks shared by modules."""
