"""Planning orchestration, manifests, scheduling and the command line."""
