"""Shared models, configuration and infrastructure of the decision core."""
