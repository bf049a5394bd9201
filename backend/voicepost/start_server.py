# backend/voicepost/start_server.py
"""Run the backend under uvicorn with settings from the environment."""

import uvicorn

from voicepost.core.config import load_settings


def main() -> None:
    settings = load_settings()
    print(f"Starting VoicePost backend on port {settings.port} (storage={settings.storage_backend})")
    uvicorn.run(
        "voicepost.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
