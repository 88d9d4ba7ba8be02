#!/usr/bin/env python3
"""Main entry point for the PRD debate service."""

import logging
import os
import sys

from config.settings import get_default_config


def setup_logging(level: str = "INFO"):
    """Configure logging for the web server."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # Suppress noisy third-party loggers
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def print_usage():
    """Print usage information for local development."""
    print("PRD Debate Service")
    print("=" * 40)
    print("Start the API server:")
    print("   python main.py --web")
    print()
    print("Configuration:")
    print("   PRD_DEBATE_CONFIG=path/to/config.yaml  (else ./debate_config.json)")
    print("   OPENROUTER_API_KEY=...                 (OpenRouter models)")
    print("   ALLOWED_ORIGINS=https://a.example,...  (CORS)")
    print()


def start_web_server():
    """Start the FastAPI web server."""
    config = get_default_config()
    setup_logging(config.system.log_level)

    import uvicorn

    from web.api import create_app

    port = int(os.environ.get("PORT", 8000))
    logging.getLogger(__name__).info(f"Starting PRD debate server on port {port}")
    print(f"API Documentation: http://localhost:{port}/docs")

    uvicorn.run(create_app(config), host="0.0.0.0", port=port, log_level="info", access_log=True)


def main():
    """Main entry point."""
    is_production = any([
        "PORT" in os.environ,
        os.environ.get("ENVIRONMENT") == "production",
    ])

    if is_production or "--web" in sys.argv:
        start_web_server()
    else:
        print_usage()


if __name__ == "__main__":
    main()
