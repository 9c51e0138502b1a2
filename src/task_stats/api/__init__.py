"""HTTP surface for the performance sync."""
