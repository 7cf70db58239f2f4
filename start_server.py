#!/usr/bin/env python3
"""Start uvicorn for the travel allowance API, honouring the PORT environment variable."""

import os
import subprocess
import sys
from pathlib import Path

port = os.environ.get("PORT", "8000")
try:
    port_int = int(port)
except ValueError:
    print(f"Warning: Invalid PORT value '{port}', using default 8000", file=sys.stderr)
    port_int = 8000

src_path = Path.cwd() / "src"
if not src_path.is_dir():
    print(f"Warning: src directory not found at {src_path}", file=sys.stderr)
    src_path = Path.cwd()

pythonpath = os.environ.get("PYTHONPATH", "")
os.environ["PYTHONPATH"] = f"{src_path}{os.pathsep}{pythonpath}" if pythonpath else str(src_path)
sys.path.insert(0, str(src_path))

try:
    import eduadmin.main  # noqa: F401
except Exception as e:
    print(f"❌ Failed to import eduadmin.main: {type(e).__name__}: {e}", file=sys.stderr)
    print(f"   PYTHONPATH: {os.environ['PYTHONPATH']}", file=sys.stderr)
    sys.exit(1)

cmd = [
    sys.executable,
    "-m",
    "uvicorn",
    "eduadmin.main:app",
    "--host",
    "0.0.0.0",
    "--port",
    str(port_int),
    "--proxy-headers",
    "--forwarded-allow-ips", "*",
    "--log-level", os.environ.get("EDU_LOG_LEVEL", "info").lower(),
]

print(f"🚀 Starting server on port {port_int}...", file=sys.stderr)
try:
    sys.exit(subprocess.call(cmd))
except KeyboardInterrupt:
    print("⚠️ Server interrupted by user", file=sys.stderr)
    sys.exit(0)
