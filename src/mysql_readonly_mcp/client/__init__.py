"""
MCP client CLI
"""
