"""Studio group-class scheduling and booking backend."""
