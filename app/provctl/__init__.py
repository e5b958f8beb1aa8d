"""provctl - Idempotent workstation provisioning.

Reconciles packages, configuration files and system settings on macOS,
Ubuntu Server, WSL and Windows against a declarative item catalogue.
"""

__version__ = "0.1.0"
