"""Tracking module: periodic vehicle position reporting.

This module provides:
- NMEA sentence parsing (RMC, GGA, VTG, GLL, GSA)
- A serial receiver transport and permission gate
- HTTP delivery of position envelopes
- The tracking session controller and console status rendering

Main components:
- tracking_core: Core functionality (controller, source, channel)
- config: TrackingConfig dataclass
- identifier_store: Persisted vehicle identifier
- main_tracking: Command line entry point
"""
