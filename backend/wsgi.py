# backend/wsgi.py
# Entry point for `flask run` / `python -m flask <group> <command>` (FLASK_APP=wsgi.py)
# and for WSGI servers (wsgi:app).

from pharmacy import create_app

app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=app.config["PORT"])
