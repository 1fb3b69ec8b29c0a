"""
SQL admission and execution pipeline
"""
