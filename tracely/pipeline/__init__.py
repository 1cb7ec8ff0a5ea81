"""Write path: observation intake, recompute and change detection."""
