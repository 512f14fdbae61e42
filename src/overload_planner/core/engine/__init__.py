"""Policy configuration loading."""
