"""Command line tool for kube-state."""
