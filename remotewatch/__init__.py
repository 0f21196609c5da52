"""Open files from a remote SSH session in the local GUI editor."""
