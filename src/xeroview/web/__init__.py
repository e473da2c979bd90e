"""Web front end — FastAPI app, routes and HTML pages."""
