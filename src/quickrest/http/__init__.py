"""HTTP message types: the request envelope and the response writer."""
