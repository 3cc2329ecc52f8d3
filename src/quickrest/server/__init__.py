"""ASGI adapter: turns scopes into requests and writer output into messages."""
