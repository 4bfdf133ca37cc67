"""Agent definitions, the built-in catalog and the graph engine."""
