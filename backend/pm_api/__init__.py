"""Project management API: schema, MS Project import pipeline, HTTP intake."""
