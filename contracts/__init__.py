"""Boundary contracts of the decision core."""
