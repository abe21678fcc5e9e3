"""GUI-agnostic core: tree models, the outline engine, parsers and services."""
