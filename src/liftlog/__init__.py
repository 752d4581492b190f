"""
liftlog: a strength-training log with rep-range progression advice.

Records sets per exercise, groups them into daily sessions, computes
volume and estimated 1RM, recommends the next weight or rep target, and
runs a rest timer between sets.
"""

__version__ = "0.1.0"
