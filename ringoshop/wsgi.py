# ringoshop/wsgi.py
from ringoshop.app import create_app

# For gunicorn / `flask --app ringoshop.wsgi`
app = create_app()


if __name__ == "__main__":
    app.run(debug=True)
