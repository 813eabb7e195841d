"""Application plumbing: config, extensions, logging, errors, CORS and proxy."""
