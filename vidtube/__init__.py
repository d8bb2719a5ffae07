"""VidTube API backend."""
