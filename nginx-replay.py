#!/usr/bin/env python3
"""
nginx-replay - replay nginx access logs against a target server

This is a convenience wrapper that calls the packaged implementation.
The actual implementation is in src/nginx_replay/cli.py

Usage:
    python nginx-replay.py -f access.log -p http://localhost:8080
"""

import sys
from pathlib import Path

# Add src to the path for running from a checkout
sys.path.insert(0, str(Path(__file__).parent / "src"))

from nginx_replay.cli import main

if __name__ == '__main__':
    main()
