"""
Deterministic conveyor sizing engine.

Pure Python math. No I/O.
Given sanitized conveyor inputs (geometry, belt, pulleys, drive, load,
environment), produce belt pull, torque, shaft sizes, pulley minimums,
PCI tube stress checks and a tracking-mode recommendation.
"""
