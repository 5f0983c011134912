"""
Recipe regression harness.

A recipe is a named, sanitized input snapshot plus optional output snapshots.
The runner re-executes recipes through the engine and diffs the result field
by field; the drift module ranks numeric deviation across a sweep.
ci.py decides which failures block a build.
"""
