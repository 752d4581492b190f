"""CLI commands, registered on the shared app at import time."""
