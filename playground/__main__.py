# playground/__main__.py
from . import create_app

app = create_app()

if __name__ == "__main__":
    try:
        app.run(host="0.0.0.0", port=app.config["PORT"])
    finally:
        app.extensions["store"].close()
