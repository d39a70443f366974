"""Domain helpers: enums, error taxonomy, field codec and payload validation."""
