#!/usr/bin/env python3
"""
Start the CareerBlast API for local development
"""
import argparse
import logging
import os
import signal
import subprocess
import sys
import threading
import time
from pathlib import Path

import requests

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ServerManager:
    def __init__(self, host="127.0.0.1", port=8000, reload=True):
        self.backend_process = None
        self.project_root = Path(__file__).parent
        self.backend_path = self.project_root / "careerblast_app" / "backend"
        self.host = host
        self.port = port
        self.reload = reload

    @property
    def base_url(self):
        return f"http://{self.host}:{self.port}"

    def check_prerequisites(self):
        """Check if all prerequisites are met"""
        logger.info("Checking prerequisites...")

        if not (self.backend_path / "main.py").exists():
            logger.error("Backend main.py not found")
            return False

        if not (self.project_root / ".env").exists():
            logger.warning("No .env file found, using development defaults")

        logger.info("Prerequisites check passed")
        return True

    def setup_environment(self):
        """Development defaults; anything already exported wins"""
        env = os.environ.copy()
        env.setdefault("ENVIRONMENT", "development")
        env.setdefault("DATABASE_URL", "sqlite:///./careerblast.db")
        env.setdefault("STORAGE_BACKEND", "local")
        env.setdefault("PUBLIC_BASE_URL", self.base_url)
        env.setdefault("LOG_LEVEL", "INFO")
        return env

    def start_backend(self, env):
        """Start the FastAPI backend"""
        logger.info("Starting backend server...")

        command = [
            sys.executable, "-m", "uvicorn", "careerblast_app.backend.main:app",
            "--host", self.host, "--port", str(self.port),
        ]
        if self.reload:
            command.append("--reload")

        try:
            self.backend_process = subprocess.Popen(
                command,
                cwd=self.project_root,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
            )
        except OSError as e:
            logger.error(f"Failed to start backend: {e}")
            return False

        def read_backend_output():
            for line in iter(self.backend_process.stdout.readline, ''):
                print(f"[BACKEND] {line.strip()}")

        threading.Thread(target=read_backend_output, daemon=True).start()
        logger.info(f"Backend server starting on {self.base_url}")
        return True

    def wait_for_backend(self, attempts=20):
        """Poll the health endpoint until the API answers"""
        logger.info("Waiting for the API to start...")

        for _ in range(attempts):
            if self.backend_process.poll() is not None:
                logger.error("Backend exited with code %s", self.backend_process.returncode)
                return False
            try:
                response = requests.get(f"{self.base_url}/api/health", timeout=2)
                if response.status_code == 200:
                    logger.info("Backend is responding")
                    logger.info(f"API docs: {self.base_url}/docs")
                    logger.info(f"Config check: {self.base_url}/api/config/validate")
                    return True
            except requests.exceptions.RequestException:
                pass
            time.sleep(0.5)

        logger.warning("Could not verify backend status")
        return True

    def cleanup(self):
        """Clean up processes"""
        if self.backend_process and self.backend_process.poll() is None:
            logger.info("Shutting down backend...")
            self.backend_process.terminate()
            try:
                self.backend_process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.backend_process.kill()
            logger.info("Backend shut down")

    def run(self):
        try:
            if not self.check_prerequisites():
                return False
            if not self.start_backend(self.setup_environment()):
                return False
            if not self.wait_for_backend():
                return False

            logger.info("Press Ctrl+C to stop the server")
            try:
                while self.backend_process.poll() is None:
                    time.sleep(1)
            except KeyboardInterrupt:
                logger.info("Shutdown requested...")
        finally:
            self.cleanup()

        return True


def main():
    parser = argparse.ArgumentParser(description="Run the CareerBlast API locally")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload")
    args = parser.parse_args()

    manager = ServerManager(host=args.host, port=args.port, reload=not args.no_reload)

    def signal_handler(sig, frame):
        logger.info("Received interrupt signal")
        manager.cleanup()
        sys.exit(0)

    signal.signal(signal.SIGTERM, signal_handler)

    if not manager.run():
        print("Failed to start the CareerBlast API")
        sys.exit(1)


if __name__ == "__main__":
    main()
