"""
Core building blocks: geo math, cache tiers, events, scheduling, errors and
dependency wiring. Import submodules directly.
"""
