"""HTTP API exposing the schema health scans."""
