"""Template extraction pipeline: read, filter, assemble, write."""
