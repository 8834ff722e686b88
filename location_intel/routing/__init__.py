"""Query classification and agent routing."""
