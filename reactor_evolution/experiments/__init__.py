"""Command-line entry points and report builders."""
