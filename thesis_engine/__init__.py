"""
Index Thesis Engine
-------------------
Playbook classification, conviction scoring and signal alerts for
index instruments.
"""

__version__ = "0.1.0"
