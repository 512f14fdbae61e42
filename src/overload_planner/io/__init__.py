"""Session persistence and planning flow."""
