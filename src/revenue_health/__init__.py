"""Revenue Health MCP Server.

Score a small business from whatever metrics it has, explain the score, and
turn it into a 7-day action plan and tool suggestions.
"""

__version__ = "0.1.0"
