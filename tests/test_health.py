"""Smoke test for application startup."""


def test_app_imports() -> None:
    """Verify the app can be imported without errors."""
    from catalogsync.main import app

    assert app.title == "CatalogSync"


def test_app_routes() -> None:
    from catalogsync.main import app

    paths = {route.path for route in app.routes}
    assert {"/health", "/ready", "/imports/start", "/imports/stop", "/imports/status"} <= paths
