"""Pizza sales reporting pipeline."""
