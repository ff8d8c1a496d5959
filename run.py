#!/usr/bin/env python3
"""
ServiceHub Backend - Main application entry point
"""
from servicehub import create_app
from servicehub.config import server_debug_enabled
import os

app = create_app()

if __name__ == '__main__':
    port = int(os.getenv('PORT', 5000))

    app.run(
        host='0.0.0.0',
        port=port,
        debug=server_debug_enabled()
    )
