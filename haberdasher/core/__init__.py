"""Process lifecycle: child spawn, signal relay, zombie reaping."""
