"""Status service: the smallest useful quickrest app.

Demonstrates default headers, a global logging middleware, a JSON
status route, and a route with its own inline middleware.

Run:
    python app.py
"""

import logging

from quickrest import Header, QuickRest, ServerConfig, Structured

logger = logging.getLogger("status")

app = QuickRest(ServerConfig(port=3053, enable_logging=True), logger=logger)
app.set_default_headers(Header("Content-Type", "application/json"))


def log_request(request, response):
    if app.logging_enabled:
        logger.info("reached endpoint: %s", request.url)


def get_system_status(request, response):
    response.set_status(200).json({"status": "working!"})


def testing_middleware(request, response):
    response.set_header("X-Testing", "custom middleware here")


def testing(request, response):
    response.set_status(201).send(Structured({"name": "River", "age": 1.5}))


app.use("*", log_request)
app.get("/system_status", get_system_status)
app.get("/testing", testing, testing_middleware)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.serve(lambda server: logger.info("listening on port %d", server.port()))
