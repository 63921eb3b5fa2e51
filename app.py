#!/usr/bin/env python3
import atexit

from onboard import BIND, PORT, create_app, ensure_api_url
from onboard.logs import setup_logging
from onboard.runtime import Onboard

if __name__ == "__main__":
    setup_logging()
    ensure_api_url()
    runtime = Onboard()
    atexit.register(runtime.close)
    app = create_app(runtime)
    app.run(host=BIND, port=PORT, debug=False, threaded=True)
