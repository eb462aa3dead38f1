"""
Building finance service: financial metrics and investment scenarios for
managed buildings.
"""
