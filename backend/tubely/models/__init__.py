"""Pydantic data models for the Tubely backend."""

from tubely.models.video import VideoRecord


__all__ = ["VideoRecord"]
