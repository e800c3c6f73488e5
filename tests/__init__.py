"""Tests for neurodrill.

Engine tests drive every drill with a hand-advanced fake clock. The UI smoke
test runs headlessly using pygame's dummy video driver. Run ``pytest`` from
the project root.
"""
