"""HTTP-facing models: error schema, requests and responses."""
