# app.py (gunicorn + local run)

import os

from dairypro.application import create_app


# gunicorn entry point: gunicorn app:app
app = create_app()


# Local run only
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=True)
