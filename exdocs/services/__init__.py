"""Collaborators of the lookup core: lock file cache, runtime probe, completions."""
