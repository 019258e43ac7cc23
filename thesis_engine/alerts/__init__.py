"""
Alerting
--------
Background delivery of signal-change alerts.
"""
