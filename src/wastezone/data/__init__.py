"""Zone registry loading."""
