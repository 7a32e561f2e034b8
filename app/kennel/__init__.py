"""kennel - package lifecycle agent for managed client fleets.

Pilots pre-release editions, keeps live editions installed and current,
defers reboot-requiring work to a logout-time queue, and expires
packages nobody uses anymore.
"""

__version__ = "0.4.0"
