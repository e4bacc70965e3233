"""Terminal session plumbing: events, raw mode and the main loop."""
