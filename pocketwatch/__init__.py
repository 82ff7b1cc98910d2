"""
PocketWatch - Source Package

Budget tracking that works anonymously on the device and moves to a
per-user remote store once someone signs in.

DESIGN PRINCIPLES:
1. One authoritative store per session state (local OR remote, never both)
2. Backend selection happens in one place
3. Failures degrade to empty results, never to crashes
4. Every derived number is recomputed from the raw transaction log
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "PocketWatch Team"
