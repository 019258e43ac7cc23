"""
Thesis Synthesis
----------------
Driver table, playbook cascade, scoring, latch and notification gate.
"""
