"""Routing: exact-path route and middleware tables with a linear dispatcher.

Routes and middleware are registered during setup and closed to
further registration when the server starts serving.
"""
