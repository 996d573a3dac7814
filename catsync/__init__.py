"""catsync - keeps a local product cache and search index in step with the upstream catalog."""
