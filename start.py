#!/usr/bin/env python3
"""
SMLT Backend - Startup Script
Starts the similar-documents API under uvicorn and waits for it to report healthy.
ChromaDB is expected to be running already.
"""

import os
import signal
import subprocess
import sys
import time
from pathlib import Path
from typing import Optional

import requests

# Colors for console output
class Colors:
    HEADER = '\033[95m'
    OKBLUE = '\033[94m'
    OKGREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'

def print_header(text):
    print(f"\n{Colors.HEADER}{Colors.BOLD}{text}{Colors.ENDC}")

def print_success(text):
    print(f"{Colors.OKGREEN}{text}{Colors.ENDC}")

def print_info(text):
    print(f"{Colors.OKBLUE}{text}{Colors.ENDC}")

def print_warning(text):
    print(f"{Colors.WARNING}{text}{Colors.ENDC}")

def print_error(text):
    print(f"{Colors.FAIL}{text}{Colors.ENDC}")


def load_env_file(path: Path) -> None:
    """Populate os.environ with key/value pairs from a simple .env file."""
    if not path.exists():
        return

    try:
        with path.open('r', encoding='utf-8') as handle:
            for raw in handle:
                line = raw.strip()
                if not line or line.startswith('#') or '=' not in line:
                    continue
                key, value = line.split('=', 1)
                os.environ.setdefault(key.strip(), value.strip().strip('"').strip("'"))
    except OSError as exc:
        print_warning(f"Failed to load environment file {path}: {exc}")


class BackendProcess:
    def __init__(self, port: int, reload: bool = False):
        self.root_dir = Path(__file__).parent
        self.port = port
        self.health_url = f'http://localhost:{port}/health'
        self.cmd = [
            sys.executable, '-m', 'uvicorn',
            'smlt_backend.main:app',
            '--host', '0.0.0.0',
            '--port', str(port),
            '--app-dir', 'src/',
        ]
        if reload:
            self.cmd.append('--reload')
        self.process: Optional[subprocess.Popen] = None

    def check_health(self) -> bool:
        try:
            response = requests.get(self.health_url, timeout=2)
        except requests.RequestException:
            return False
        return response.status_code == 200

    def start(self, startup_timeout: float = 30.0) -> bool:
        print_info("Starting SMLT backend...")
        env = os.environ.copy()
        src_path = str(self.root_dir / 'src')
        env['PYTHONPATH'] = f"{src_path}:{env['PYTHONPATH']}" if env.get('PYTHONPATH') else src_path

        self.process = subprocess.Popen(self.cmd, cwd=self.root_dir, env=env)

        deadline = time.monotonic() + startup_timeout
        while time.monotonic() < deadline:
            if self.process.poll() is not None:
                print_error("Backend exited during startup")
                return False
            if self.check_health():
                print_success(f"Backend healthy at http://localhost:{self.port}")
                return True
            time.sleep(1)

        # The first health check loads the index snapshot, which can be slow.
        print_warning("Backend started but health check has not passed yet")
        return True

    def stop(self) -> None:
        if self.process and self.process.poll() is None:
            print_info("Stopping backend...")
            self.process.terminate()
            try:
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()
        print_success("Backend stopped")

    def run(self) -> int:
        print_header("SMLT Backend Startup")

        def signal_handler(sig, frame):
            print_info("\nShutdown signal received...")
            self.stop()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        if not self.start():
            self.stop()
            return 1

        print_info(f"Try: http://localhost:{self.port}/smlt?smlt=true&smlt.id=<document id>")
        print_info("Press Ctrl+C to stop")
        try:
            return self.process.wait()
        except KeyboardInterrupt:
            self.stop()
            return 0


def main():
    """Main entry point"""
    load_env_file(Path(__file__).parent / '.env')
    print_info(
        f"Using ChromaDB at {os.environ.get('CHROMA_HOST', 'localhost')}:{os.environ.get('CHROMA_PORT', '8100')}"
    )
    port = int(os.environ.get('SMLT_PORT', '8788'))
    reload = os.environ.get('SMLT_RELOAD', '').lower() in ('1', 'true', 'yes')
    return BackendProcess(port, reload=reload).run()

if __name__ == "__main__":
    sys.exit(main())
