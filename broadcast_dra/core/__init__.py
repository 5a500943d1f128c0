"""Core protocol: commitments, auction resolution, audit and the timed session."""
