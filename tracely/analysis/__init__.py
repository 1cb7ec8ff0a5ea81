"""Pure analysis functions: classification, scoring, recompute and reports."""
