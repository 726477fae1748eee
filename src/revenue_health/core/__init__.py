"""Health scoring engine: pillar scores, risk rules, next steps, plans, and tool picks.

This module is framework-agnostic and performs no I/O. It has no dependency
on MCP, the database, or any HTTP client; the server and the history store
import from here, never the other way around.
"""
