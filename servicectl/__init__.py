"""
servicectl - a PID-file based controller for a single service process.

Starts, stops, restarts and upgrades one long-running service binary, with
identity checks against recycled PIDs and a bounded graceful-then-forced
shutdown.
"""

__version__ = "0.1.0"
