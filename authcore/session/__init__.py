"""Session mirroring, secure storage collaborators and one-shot actions."""
