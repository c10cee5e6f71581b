"""
nginx-replay

Replay recorded nginx access-log traffic against a target server at the
original (scaled) cadence and report where the replayed responses diverge.
"""

__version__ = '1.0.0'
