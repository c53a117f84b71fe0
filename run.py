import os
from dotenv import load_dotenv

# Config reads the environment at import time, so .env has to be loaded first
load_dotenv()

from app import create_app  # noqa: E402
from app.config import Config  # noqa: E402

app = create_app(Config)

if __name__ == '__main__':
    port = int(os.getenv('PORT', 5000))
    host = os.getenv('HOST', '0.0.0.0')
    app.run(host=host, port=port, debug=True)
