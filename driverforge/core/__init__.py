"""Core pipeline pieces: resolution, fetch, dating, composition, embedding, build."""
