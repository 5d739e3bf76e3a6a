# src/release_flow/steps/__init__.py
"""Steps concretos dos pipelines do Release Flow."""
