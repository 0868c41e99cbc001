"""Data models for the FastAPI service.

This package contains Pydantic models for entities, pagination and
error responses.
"""
