"""Tracely privacy-risk engine.

Turns tracker observations into per-site risk scores, a bounded
score history, change-detection verdicts, anomalies and audit
reports.
"""
