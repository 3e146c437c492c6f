"""Content transforms: frontmatter parsing and markdown rendering."""
