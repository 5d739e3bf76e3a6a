# src/release_flow/trigger/__init__.py
"""Trigger Listener: decide quais pipelines um evento dispara."""

from .listener import TriggerListener, all_paths_ignored

__all__ = ["TriggerListener", "all_paths_ignored"]
