"""HTTP surface for the weather resolver."""
