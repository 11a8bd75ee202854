"""
Core module for the step self-healing plugin.

This module contains:
- config.py: Process settings read from the environment
- config_loader.py: Plugin configuration file loading
- logging_config.py: Logging configuration
- events.py: Test lifecycle listener interface
"""

__all__ = ["config", "config_loader", "logging_config", "events"]
