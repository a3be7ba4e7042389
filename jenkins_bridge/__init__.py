"""
Jenkins MCP bridge: trigger Jenkins jobs over MCP and relay build results.
"""

__version__ = "1.0.0"
