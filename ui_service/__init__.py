"""Terminal input and rendering for meshchat."""
