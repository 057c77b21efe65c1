"""
Integration Tests Package

End-to-end checks through Simulation and the bundled catalog.

TEST AXIOMS:
=============
1. Determinism: same anchor + events + query time = identical snapshot
2. Explicit failure: every error is a typed LifeStateError
3. Clamping: out-of-range numbers are absorbed, never rejected
"""
