"""
Zeek - ZKsync storage proof toolkit

Fetches storage proofs from a ZKsync node and verifies them against the root
hash of the L1 batch they were generated for.
"""

__version__ = "0.1.0"
