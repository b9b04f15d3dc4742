"""
Thin wrappers around the external tools the installation strategies drive
(pacman, the AUR helper, git, make, pip).

Backends only know how to invoke their tool through a CommandRunner; deciding
whether an entry is skipped, installed or failed is left to the strategies.
"""

__all__ = []
