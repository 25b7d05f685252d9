"""Adapters between tessera renderers and web frameworks."""
