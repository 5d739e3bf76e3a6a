# src/release_flow/pipelines/__init__.py
"""Definições fixas dos pipelines `publish` e `ci`."""

from .definitions import (
    PIPELINE_CI,
    PIPELINE_PUBLISH,
    build_and_test_spec,
    ci_definition,
    definition_for,
    publish_definition,
)

__all__ = [
    "PIPELINE_CI",
    "PIPELINE_PUBLISH",
    "build_and_test_spec",
    "ci_definition",
    "definition_for",
    "publish_definition",
]
