#!/usr/bin/env python
"""
VAT Pricing API launcher.

Usage:
    python scripts/run_api.py [--host HOST] [--port PORT] [--reload]
"""
import argparse
import os
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
APP = "vat_pricing.api.main:app"


def build_command(host="127.0.0.1", port=8000, reload=False):
    """uvicorn command line for the pricing app."""
    command = [sys.executable, "-m", "uvicorn", APP, "--host", host, "--port", str(port)]
    if reload:
        command.append("--reload")
    return command


def build_env(environ=None):
    """Copy of ``environ`` with src/ first on PYTHONPATH."""
    env = dict(os.environ if environ is None else environ)
    src_path = str(PROJECT_ROOT / "src")
    if env.get("PYTHONPATH"):
        env["PYTHONPATH"] = f"{src_path}{os.pathsep}{env['PYTHONPATH']}"
    else:
        env["PYTHONPATH"] = src_path
    return env


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the VAT pricing API with uvicorn")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    parser.add_argument("--reload", action="store_true", help="Restart on source changes (development only)")
    args = parser.parse_args(argv)

    print(f"Starting VAT Pricing API on {args.host}:{args.port}...")
    try:
        subprocess.run(build_command(args.host, args.port, args.reload), env=build_env(), cwd=PROJECT_ROOT)
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
