"""Adapters for sources, AI providers, storage and configuration."""
