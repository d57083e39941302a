"""Pydantic schemas for model output and the HTTP surface."""
