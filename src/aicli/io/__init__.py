"""Input side: path validation, readers, stdin and assembly."""
