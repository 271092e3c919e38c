"""Qt widgets for Git File Browser."""
