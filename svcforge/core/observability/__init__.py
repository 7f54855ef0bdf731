"""
Observability — logging setup.
"""
