"""
Engine — the generator registry and the run that drives it.
"""
