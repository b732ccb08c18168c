"""Word memory and image loader."""
