try:
    from backend.conspiracy.server import create_app
except ImportError:  # pragma: no cover
    from conspiracy.server import create_app

app, socketio = create_app()
