#!/usr/bin/env python3
"""
Print Farm server launcher

Usage: python serve.py [fleet.json] [port]
"""
import sys

from printfarm.server import run_server

if __name__ == '__main__':
    fleet_file = sys.argv[1] if len(sys.argv) > 1 else None
    port = int(sys.argv[2]) if len(sys.argv) > 2 else 8001
    run_server(port=port, fleet_file=fleet_file)
