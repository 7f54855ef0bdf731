"""Core — models, services and the generation engine."""
