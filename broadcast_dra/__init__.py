"""
Public-Broadcast Deferred Revelation Auction (broadcast_dra)

A commit-reveal-resolve reserve auction prototype integrating:
- Pluggable commitment schemes (hash, Pedersen, range proof, knowledge proof)
- A hash-chained audit ledger for commitment receipts
- A timed Commit -> Reveal -> Resolved protocol session
- After-the-fact transcript auditing
"""

__version__ = "0.1.0"
