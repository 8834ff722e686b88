"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Canonical tool ids, provider source tags, meta-tool names
- exceptions: Custom exception hierarchy
"""
