"""Provider independent release model and reconciliation logic."""
