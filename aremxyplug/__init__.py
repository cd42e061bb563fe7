"""aremxyplug: a billing aggregator for Nigerian utility and telecom bills."""
