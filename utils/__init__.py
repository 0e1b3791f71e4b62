"""Validation, output rendering and preference helpers shared by the UIs."""
