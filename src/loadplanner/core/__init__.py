"""Geometry primitives, data models and layout validation."""
