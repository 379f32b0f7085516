"""Text encodings: blueprint codes and seed files."""
