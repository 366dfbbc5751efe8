"""One-shot converters from legacy formats."""
