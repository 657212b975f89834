"""
fieldcapture CLI - Replay scripted capture sessions.

Usage:
    fieldcapture-replay scripts/trace.yaml
    fieldcapture-replay scripts/manual.yaml --value '{"lat": 1.0, "lng": 2.0}'
"""

__version__ = "1.0.0"
